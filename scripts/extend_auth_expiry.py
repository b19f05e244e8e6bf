"""
Push every cookie expiry in MSAuth.json 30 days forward.

Writes a timestamped backup (MSAuth.json.bak.<ms>) next to the file first.
Cookies keep whichever expiry key they already use (expires or expiry).
The portal still enforces its own server-side session lifetime; this only
stops the browser from discarding the cookies early.

Usage:
    python -m scripts.extend_auth_expiry [path/to/MSAuth.json]

Exit codes: 0 updated, 2 file not found, 3 no cookies array.
"""
import json
import logging
import shutil
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

from config.defaults import AuthStateDefaults

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

FUNCTION_ROOT = Path(__file__).resolve().parent.parent
EXTEND_SECONDS = 30 * 24 * 60 * 60


class NoCookiesError(ValueError):
    pass


def extend_cookie_expiry(auth_path: Path, seconds: int = EXTEND_SECONDS,
                         now: Optional[float] = None) -> Tuple[Path, int]:
    """
    Rewrite cookie expiries to now + seconds.

    Returns:
        (backup path, new expiry as epoch seconds)

    Raises:
        FileNotFoundError: auth_path does not exist
        NoCookiesError: The file has no cookies array
    """
    auth_path = Path(auth_path)
    if not auth_path.is_file():
        raise FileNotFoundError(f"MSAuth.json not found at {auth_path}")

    now = time.time() if now is None else now
    backup = auth_path.with_name(f"{auth_path.name}.bak.{int(now * 1000)}")
    shutil.copyfile(auth_path, backup)

    data = json.loads(auth_path.read_text(encoding="utf-8-sig"))
    cookies = data.get("cookies") if isinstance(data, dict) else None
    if not isinstance(cookies, list):
        raise NoCookiesError("No cookies array found in MSAuth.json")

    new_expiry = int(now) + seconds
    for cookie in cookies:
        if "expiry" in cookie and "expires" not in cookie:
            cookie["expiry"] = new_expiry
        else:
            cookie["expires"] = new_expiry

    auth_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return backup, new_expiry


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    auth_path = Path(argv[0]) if argv else FUNCTION_ROOT / AuthStateDefaults.FILE_NAME

    try:
        backup, new_expiry = extend_cookie_expiry(auth_path)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 2
    except NoCookiesError as e:
        logger.error(str(e))
        return 3

    logger.info(f"Backup created: {backup}")
    logger.info(f"Updated cookie expiries to {datetime.fromtimestamp(new_expiry, timezone.utc).isoformat()}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
