"""
VCardDirectoryContactStore - Implements IContactStore over a directory
of .vcf files, parsed with vobject.

Permission is modeled as recorded consent next to the directory:
  no consent recorded          -> not_determined
  consent "denied"             -> denied
  consent "granted", unreadable -> restricted
  consent "granted"            -> authorized
Change events come from an asyncio polling task that fingerprints the
directory (file names, sizes, mtimes).
"""

import asyncio
import base64
import logging
import os
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Tuple

import phonenumbers
import vobject

from ..domain.entities.authorization import AuthorizationStatus, SortOrder
from ..domain.entities.contact import Contact, PhoneNumber, PostalAddress, sort_contacts
from ..domain.entities.field_selection import ContactField, FieldSelection
from ..domain.errors import ContactsEnumerationError, ContactsPermissionError
from ..domain.interfaces.i_app_context import IAppContext
from ..domain.interfaces.i_contact_store import ChangeHandler, IContactStore
from .change_observation import ChangeObservation

logger = logging.getLogger(__name__)

CONSENT_GRANTED = "granted"
CONSENT_DENIED = "denied"

# TYPE parameters that say nothing about which phone/email/address this is
_NON_LABEL_TYPES = {"pref", "voice", "internet", "x400"}

ConsentPrompt = Callable[[Path], Awaitable[bool]]


async def deny_consent(directory: Path) -> bool:
    """Default prompt for non-interactive processes: never grants access."""
    logger.warning(
        f"[VCardStore] no consent prompt configured; denying access to {directory}"
    )
    return False


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(v).strip() for v in value if v and str(v).strip())
    return str(value).strip()


def _label(line) -> str:
    types = [t.lower() for t in line.params.get("TYPE", [])]
    for t in types:
        for part in t.split(","):
            part = part.strip()
            if part and part not in _NON_LABEL_TYPES:
                return part
    return ""


def _photo_bytes(line) -> Optional[bytes]:
    value = line.value
    if isinstance(value, bytes):
        return value
    if isinstance(value, str) and value.startswith("data:") and ";base64," in value:
        try:
            return base64.b64decode(value.split(";base64,", 1)[1])
        except ValueError:
            return None
    # remote photo URIs are not fetched
    return None


class VCardDirectoryContactStore(IContactStore):
    """
    Contact store backed by a directory of vCard files.
    The name-sort preference lives in a small file next to the directory
    so a sort change can be detected when the app becomes active.
    """

    def __init__(
        self,
        directory: Path,
        app_context: Optional[IAppContext] = None,
        default_sort_order: SortOrder = SortOrder.GIVEN_NAME,
        default_region: Optional[str] = None,
        field_selection: Optional[FieldSelection] = None,
        poll_interval: float = 5.0,
        consent_prompt: Optional[ConsentPrompt] = None,
        strict: bool = False,
    ):
        self.directory = Path(directory)
        self.consent_file = self.directory.with_name(self.directory.name + ".consent")
        self.sort_order_file = self.directory.with_name(self.directory.name + ".sort-order")
        self.default_sort_order = default_sort_order
        self.default_region = default_region
        self.field_selection = field_selection or FieldSelection.default()
        self.poll_interval = poll_interval
        self.consent_prompt = consent_prompt or deny_consent
        self.observation = ChangeObservation(
            tag="VCardStore",
            read_sort_order=self.read_sort_order,
            app_context=app_context,
            strict=strict,
        )
        self._poll_task: Optional[asyncio.Task] = None

    @property
    def supports_contact_editing(self) -> bool:
        return True

    # ── Permission ───────────────────────────────────────────────────────

    def read_consent(self) -> Optional[str]:
        try:
            value = self.consent_file.read_text(encoding="utf-8").strip().lower()
        except FileNotFoundError:
            return None
        return value if value in (CONSENT_GRANTED, CONSENT_DENIED) else None

    def record_consent(self, granted: bool) -> None:
        self.consent_file.parent.mkdir(parents=True, exist_ok=True)
        self.consent_file.write_text(
            CONSENT_GRANTED if granted else CONSENT_DENIED, encoding="utf-8"
        )
        if granted:
            self.directory.mkdir(parents=True, exist_ok=True)
        logger.info(f"[VCardStore] consent recorded: granted={granted} for {self.directory}")

    def authorization_status(self) -> AuthorizationStatus:
        consent = self.read_consent()
        if consent is None:
            return AuthorizationStatus.NOT_DETERMINED
        if consent == CONSENT_DENIED:
            return AuthorizationStatus.DENIED
        if self.directory.exists() and not os.access(self.directory, os.R_OK | os.X_OK):
            return AuthorizationStatus.RESTRICTED
        return AuthorizationStatus.AUTHORIZED

    async def request_access(self) -> bool:
        try:
            granted = bool(await self.consent_prompt(self.directory))
            self.record_consent(granted)
        except Exception as exc:
            raise ContactsPermissionError(
                f"access request for {self.directory} failed: {exc}"
            ) from exc
        return granted

    # ── Sort order preference ────────────────────────────────────────────

    def read_sort_order(self) -> SortOrder:
        try:
            raw = self.sort_order_file.read_text(encoding="utf-8").strip().lower()
        except FileNotFoundError:
            return self.default_sort_order
        try:
            return SortOrder(raw)
        except ValueError:
            logger.warning(f"[VCardStore] ignoring unknown sort order {raw!r}")
            return self.default_sort_order

    def set_sort_order(self, sort_order: SortOrder) -> None:
        self.sort_order_file.parent.mkdir(parents=True, exist_ok=True)
        self.sort_order_file.write_text(sort_order.value, encoding="utf-8")

    # ── Enumeration ──────────────────────────────────────────────────────

    def fetch_contacts(self) -> List[Contact]:
        contacts: List[Contact] = []
        if not self.directory.exists():
            return contacts
        for path in sorted(self.directory.glob("*.vcf")):
            try:
                text = path.read_text(encoding="utf-8")
                for index, card in enumerate(vobject.readComponents(text)):
                    if card.name.upper() != "VCARD":
                        continue
                    contacts.append(self._to_contact(card, f"{path.stem}:{index}"))
            except (OSError, ValueError, vobject.base.VObjectError) as exc:
                # ValueError covers undecodable base64 and quoted-printable values
                logger.error(f"[VCardStore] failed to read {path.name}: {exc!r}")
                raise ContactsEnumerationError(f"failed to read {path.name}: {exc}") from exc

        sort_order = self.read_sort_order()
        if sort_order == SortOrder.USER_DEFAULT:
            sort_order = self.default_sort_order
        return sort_contacts(contacts, sort_order)

    def normalize_phone(self, raw: str) -> str:
        """
        E.164 form of a TEL value so reformatting alone never reads as an
        edit. Numbers without a country code use default_region; anything
        phonenumbers rejects is kept as written.
        """
        value = raw.strip()
        if not value:
            return value
        try:
            parsed = phonenumbers.parse(value, self.default_region)
        except phonenumbers.NumberParseException:
            return value
        if not phonenumbers.is_valid_number(parsed):
            return value
        return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)

    def _to_contact(self, card, fallback_id: str) -> Contact:
        contents = card.contents
        selection = self.field_selection

        uid_lines = contents.get("uid")
        identifier = _text(uid_lines[0].value) if uid_lines else ""

        given = family = full = organization = ""
        if selection.includes(ContactField.NAME):
            if contents.get("n"):
                name = contents["n"][0].value
                given = _text(getattr(name, "given", ""))
                family = _text(getattr(name, "family", ""))
            if contents.get("fn"):
                full = _text(contents["fn"][0].value)
            if contents.get("org"):
                organization = _text(contents["org"][0].value)

        phones = []
        if selection.includes(ContactField.PHONE_NUMBERS):
            phones = [
                PhoneNumber(
                    label=_label(line),
                    value=self.normalize_phone(_text(line.value)),
                )
                for line in contents.get("tel", [])
            ]

        emails = []
        if selection.includes(ContactField.EMAILS):
            emails = [_text(line.value) for line in contents.get("email", [])]

        addresses = []
        if selection.includes(ContactField.POSTAL_ADDRESSES):
            for line in contents.get("adr", []):
                adr = line.value
                addresses.append(
                    PostalAddress(
                        label=_label(line),
                        street=_text(getattr(adr, "street", "")),
                        city=_text(getattr(adr, "city", "")),
                        region=_text(getattr(adr, "region", "")),
                        postal_code=_text(getattr(adr, "code", "")),
                        country=_text(getattr(adr, "country", "")),
                    )
                )

        thumbnail = None
        if selection.includes(ContactField.THUMBNAIL) and contents.get("photo"):
            thumbnail = _photo_bytes(contents["photo"][0])

        return Contact.from_fields(
            identifier=identifier or fallback_id,
            given_name=given,
            family_name=family,
            full_name=full,
            organization=organization,
            phone_numbers=phones,
            emails=emails,
            postal_addresses=addresses,
            thumbnail=thumbnail,
        )

    # ── Change observation ───────────────────────────────────────────────

    def fingerprint(self) -> Tuple:
        if not self.directory.exists():
            return ()
        entries = []
        for path in self.directory.glob("*.vcf"):
            try:
                stat = path.stat()
            except FileNotFoundError:
                continue
            entries.append((path.name, stat.st_size, stat.st_mtime_ns))
        return tuple(sorted(entries))

    def start_observing_changes(self, change_handler: ChangeHandler) -> None:
        if not self.observation.install(change_handler):
            return
        self._poll_task = asyncio.get_running_loop().create_task(self._poll())

    def stop_observing(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

    async def _poll(self) -> None:
        previous = self.fingerprint()
        while True:
            await asyncio.sleep(self.poll_interval)
            current = self.fingerprint()
            if current == previous:
                continue
            previous = current
            logger.info(f"[VCardStore] change detected in {self.directory}")
            self.observation.run_change_handler()
