"""
ContactSync — CLI Entry Point

Usage:
  # Ask for access once (prompting if needed) and print the contacts
  python main.py sync

  # Re-fetch on the user's behalf, bypassing the debounce
  python main.py refresh

  # Keep running and log every contact update
  python main.py watch

  # Record consent without prompting
  python main.py grant
  python main.py deny
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List

from dotenv import load_dotenv
load_dotenv()

from contactsync.domain.entities.authorization import AuthorizationStatus
from contactsync.domain.entities.contact import Contact
from contactsync.domain.interfaces.i_fetcher_delegate import SystemContactsFetcherDelegate

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("contactsync")


def parse_args():
    parser = argparse.ArgumentParser(
        description="ContactSync — system contacts synchronization"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sync", help="Request access once and fetch contacts")
    subparsers.add_parser("refresh", help="User-requested refresh (bypasses debounce)")
    subparsers.add_parser("watch", help="Observe the contact store and log updates")
    subparsers.add_parser("grant", help="Record consent to read the contacts directory")
    subparsers.add_parser("deny", help="Record refusal to read the contacts directory")

    return parser.parse_args()


class PrintingDelegate(SystemContactsFetcherDelegate):
    def __init__(self, sort_order):
        self.sort_order = sort_order

    def on_contacts_updated(self, fetcher, contacts: List[Contact], is_user_requested: bool) -> None:
        print("\n" + "=" * 70)
        print(f"CONTACTS ({len(contacts)}){' — user requested' if is_user_requested else ''}")
        print("=" * 70)
        for contact in contacts:
            phones = ", ".join(p.value for p in contact.phone_numbers)
            emails = ", ".join(contact.emails)
            print(f"  • {contact.display_name(self.sort_order)}  {phones}  {emails}".rstrip())
        print("=" * 70)


async def prompt_for_consent(directory: Path) -> bool:
    answer = await asyncio.to_thread(
        input, f"Allow ContactSync to read contacts in {directory}? [y/N] "
    )
    return answer.strip().lower() in ("y", "yes")


def build_container():
    from contactsync.infrastructure.config import Config
    from contactsync.infrastructure.container import Container

    config = Config.from_env()
    container = Container(config, consent_prompt=prompt_for_consent)
    container.fetcher.delegate = PrintingDelegate(config.sort_order)
    return container


async def run_sync():
    container = build_container()
    outcome = await container.fetcher.request_once()
    container.contact_store.stop_observing()
    if outcome.error:
        logger.error(f"Sync failed: {outcome.error}")
    elif not outcome.fetched:
        logger.warning(
            f"No contacts fetched (authorization={container.fetcher.authorization_status.value})"
        )


async def run_refresh():
    container = build_container()
    if container.fetcher.authorization_status != AuthorizationStatus.AUTHORIZED:
        logger.error("Contacts access has not been granted; run `python main.py sync` first.")
        return
    outcome = await container.fetcher.user_requested_refresh()
    container.contact_store.stop_observing()
    if outcome.error:
        logger.error(f"Refresh failed: {outcome.error}")


async def run_watch():
    container = build_container()
    await container.fetcher.request_once()
    logger.info(f"Watching {container.contact_store.directory} (Ctrl+C to stop)")
    try:
        await asyncio.Event().wait()
    finally:
        container.contact_store.stop_observing()


def record_consent(granted: bool):
    container = build_container()
    container.contact_store.record_consent(granted)


def main():
    args = parse_args()

    if args.command == "sync":
        asyncio.run(run_sync())

    elif args.command == "refresh":
        asyncio.run(run_refresh())

    elif args.command == "watch":
        try:
            asyncio.run(run_watch())
        except KeyboardInterrupt:
            logger.info("Stopped watching.")

    elif args.command == "grant":
        record_consent(True)

    elif args.command == "deny":
        record_consent(False)


if __name__ == "__main__":
    main()
