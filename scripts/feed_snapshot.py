"""
Feed Snapshot Script

Signs in with FOMI_EMAIL / FOMI_PASSWORD, loads the viewer the same way
the app does at startup and prints what the store holds.

Usage:
    python scripts/feed_snapshot.py [--save RESTAURANT_ID]
"""

import os
import sys
import asyncio

from dotenv import load_dotenv

from fomi.core.exceptions import FomiException
from fomi.main import create_store

# Load environment variables
load_dotenv()

EMAIL = os.getenv("FOMI_EMAIL")
PASSWORD = os.getenv("FOMI_PASSWORD")

if not EMAIL or not PASSWORD:
    print("❌ Error: FOMI_EMAIL and FOMI_PASSWORD must be set in .env")
    sys.exit(1)


async def snapshot(save_restaurant_id: str = None):
    store = create_store()
    await store.start()

    if store.session is None:
        try:
            await store.sign_in(EMAIL, PASSWORD)
        except FomiException as e:
            print(f"❌ Sign-in failed: {e.message}")
            return

    user = store.current_user
    if user is None:
        print("⚠️ Signed in but the profile could not be loaded")
    else:
        print(f"👤 {user.full_name} (@{user.username})")
        print(f"   {user.reviews_count} reviews · {user.followers_count} followers · {user.following_count} following")

    print(f"\n📋 Lists ({len(store.lists)})")
    for lst in store.lists:
        marker = "★" if lst.is_default else " "
        print(f"  {marker} {lst.name}: {lst.count} restaurants")

    if save_restaurant_id:
        saved = await store.toggle_save_restaurant(save_restaurant_id)
        print(f"\n💾 {save_restaurant_id} is now {'saved' if saved else 'not saved'}")

    print(f"\n🍽️ Feed ({len(store.reviews)} reviews)")
    for review in store.reviews[:10]:
        restaurant = review.restaurant.name if review.restaurant else review.restaurant_id
        flags = ("♥" if review.is_liked else " ") + ("🔖" if review.is_saved else "")
        print(f"  {flags} {restaurant}: {review.title} ({review.average_score}) · {review.likes_count} likes")

    sections = await store.get_recommendations()
    print(f"\n✨ Recommendations ({len(sections)} sections)")
    for section in sections:
        names = ", ".join(r.name for r in section.items[:3])
        print(f"  {section.title}: {names}")

    unread = await store.unread_notifications()
    print(f"\n🔔 {unread} unread notifications")
    store.close()


if __name__ == "__main__":
    restaurant_id = None
    if len(sys.argv) == 3 and sys.argv[1] == "--save":
        restaurant_id = sys.argv[2]
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(snapshot(restaurant_id))
