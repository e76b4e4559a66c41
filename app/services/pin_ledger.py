# app/services/pin_ledger.py
"""
Ledger of pins created by live tests.

Live tests pin real content on Pinata. Every CID they create is recorded
here so it can be unpinned once the run finishes.

Log format: JSON array of TestPin records
Log location: Configured via TEST_PINS_FILE

Not used by the service itself.
"""
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Literal, Optional

from app.core.config import settings
from app.services.pinata_api import PinningClient

logger = logging.getLogger(__name__)

PinType = Literal["json", "file"]

IPFS_URI_PREFIX = "ipfs://"


@dataclass
class TestPin:
    __test__ = False  # not a pytest test class

    cid: str
    type: PinType
    testName: str
    createdAt: str


def get_ledger_path() -> Path:
    return Path(settings.TEST_PINS_FILE)


def strip_ipfs_prefix(cid: str) -> str:
    if cid.startswith(IPFS_URI_PREFIX):
        return cid[len(IPFS_URI_PREFIX):]
    return cid


def load_test_pins(path: Optional[Path] = None) -> List[TestPin]:
    """
    Read the ledger.

    Returns an empty list if the file is missing or cannot be parsed.
    """
    path = path or get_ledger_path()
    if not path.exists():
        return []

    try:
        entries = json.loads(path.read_text())
        return [TestPin(**entry) for entry in entries]
    except (ValueError, TypeError) as e:
        logger.warning(f"Ignoring unreadable test pin ledger {path}: {e}")
        return []


def save_test_pin(cid: str, pin_type: PinType, test_name: str, path: Optional[Path] = None) -> bool:
    """
    Record a pin created by a test.

    Args:
        cid: Bare CID or ipfs:// URI
        pin_type: "json" or "file"
        test_name: Name of the test that created the pin

    Returns:
        True if a new record was written, False if it was already present
        or the ledger could not be written
    """
    path = path or get_ledger_path()
    clean_cid = strip_ipfs_prefix(cid)
    pins = load_test_pins(path)

    if any(pin.cid == clean_cid for pin in pins):
        return False

    pins.append(TestPin(
        cid=clean_cid,
        type=pin_type,
        testName=test_name,
        createdAt=datetime.now(timezone.utc).isoformat()
    ))

    try:
        path.write_text(json.dumps([asdict(pin) for pin in pins], indent=2))
    except OSError as e:
        logger.warning(f"Failed to save test pin {clean_cid}: {e}")
        return False
    return True


def clear_test_pins(path: Optional[Path] = None) -> None:
    path = path or get_ledger_path()
    if path.exists():
        path.write_text("[]")


def cleanup_test_pins(client: PinningClient, path: Optional[Path] = None) -> int:
    """
    Unpin every CID in the ledger, then clear it.

    Individual unpin failures are logged and skipped.

    Returns:
        Number of CIDs successfully unpinned
    """
    path = path or get_ledger_path()
    pins = load_test_pins(path)
    if not pins:
        logger.info("No test pins to cleanup")
        return 0

    logger.info(f"Cleaning up {len(pins)} test pin(s)...")
    removed = 0
    for pin in pins:
        try:
            client.unpin(pin.cid)
            removed += 1
        except Exception as e:
            logger.warning(f"Failed to unpin {pin.cid}: {e}")

    clear_test_pins(path)
    logger.info(f"Cleanup complete: {removed}/{len(pins)} unpinned")
    return removed
