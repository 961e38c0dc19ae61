"""
System Check - Verify all external components are reachable
Run this before starting the 24/7 monitor (python main.py --check)
"""

from api_client import APIFootballClient
from database import Database
from errors import DeliveryError, FeedError, PersistenceError
from telegram_notifier import TelegramNotifier
from threshold_store import ThresholdStore


def check_database(db: Database) -> bool:
    """Test the SQLite store and the thresholds row"""
    print("Testing database...")
    try:
        db.fetch_one("SELECT 1")
    except PersistenceError as e:
        print(f"✗ Database error: {e}")
        return False

    thresholds = ThresholdStore(db).read()
    print(f"✓ Database working - thresholds: total {thresholds.threshold_total}, "
          f"diff {thresholds.threshold_diff}, corners {thresholds.escanteios_10min}")
    return True


def check_api_client(client: APIFootballClient) -> bool:
    """Test API-Football connection"""
    print("\nTesting API-Football connection...")
    try:
        live_matches = client.get_live_matches()
    except FeedError as e:
        print(f"✗ API-Football error: {e}")
        return False

    print(f"✓ API-Football working - Found {len(live_matches)} live matches")
    if live_matches:
        teams = live_matches[0].get('teams', {})
        print(f"  Sample match: {teams.get('home', {}).get('name', 'N/A')} vs "
              f"{teams.get('away', {}).get('name', 'N/A')}")
    stats = client.get_usage_stats()
    print(f"  Daily quota remaining: {stats['daily_remaining']}")
    return True


def check_telegram(notifier: TelegramNotifier) -> bool:
    """Test Telegram bot connection"""
    print("\nTesting Telegram bot...")
    try:
        notifier.send_message("🧪 <b>System Test</b>\n\nTelegram integration is working ✅")
    except DeliveryError as e:
        print(f"✗ Telegram bot failed: {e}")
        return False

    print("✓ Telegram bot working - check your Telegram!")
    return True


def run_checks(db: Database, client=None, notifier=None) -> bool:
    """Run all component checks and print a summary"""
    print("=" * 60)
    print("LIVE FOOTBALL PRESSURE MONITOR - COMPONENT CHECKS")
    print("=" * 60)

    results = [
        ("Database", check_database(db)),
        ("API-Football", check_api_client(client or APIFootballClient())),
        ("Telegram Bot", check_telegram(notifier or TelegramNotifier())),
    ]

    print("\n" + "=" * 60)
    for name, success in results:
        status = "✓ PASS" if success else "✗ FAIL"
        print(f"{status} - {name}")
    print("=" * 60)

    all_passed = all(success for _, success in results)
    if not all_passed:
        print("\nCheck API_FOOTBALL_KEY, TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID in your environment or .env")
    return all_passed
