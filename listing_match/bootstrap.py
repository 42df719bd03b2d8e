from __future__ import annotations
import json
import logging
import threading
import urllib.request
from pathlib import Path
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


def fetch_pretrained_model(source: str, timeout: float = 10.0) -> Dict[str, Any]:
    """Read a pretrained model document from an http(s) URL or a local path."""
    if source.startswith(("http://", "https://")):
        req = urllib.request.Request(source, method="GET")
        req.add_header("Accept", "application/json")
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            out = resp.read().decode("utf-8")
    else:
        out = Path(source).read_text(encoding="utf-8")
    data = json.loads(out)
    if not isinstance(data, dict):
        raise ValueError("pretrained model document must be a JSON object")
    return data


def start_bootstrap(source: Optional[str],
                    apply: Callable[[Dict[str, Any]], None],
                    timeout: float = 10.0,
                    background: bool = True) -> threading.Event:
    """Fetch `source` and hand the document to `apply`. Failures are logged and swallowed.
    Returns an event that is set once the attempt has finished."""
    done = threading.Event()

    def run() -> None:
        try:
            if source:
                apply(fetch_pretrained_model(source, timeout=timeout))
        except Exception as exc:
            logger.warning("Using default model configuration (%s: %s)", source, exc)
        finally:
            done.set()

    if background and source:
        threading.Thread(target=run, name="pretrained-model-bootstrap", daemon=True).start()
    else:
        run()
    return done
