"""
Poloniex Request Signature

HMAC-SHA256 over the canonical string

    METHOD\\nPATH\\nQUERY

base64 encoded. QUERY is the form-encoded parameter list with percent
escapes decoded again, parameters kept in insertion order.
"""

import base64
import hashlib
import hmac
from typing import Callable, Dict, Mapping
from urllib.parse import unquote, urlencode

from poloniex_stream.exchanges.poloniex.consts import SIGNATURE_METHOD, SIGNATURE_VERSION

Signer = Callable[[str, str, str, str, str, str], str]


def canonical_query(params: Mapping[str, str]) -> str:
    return unquote(urlencode(list(params.items())))


def sign(method: str, path: str, query: str, key: str, secret: str, timestamp: str) -> str:
    """
    Base64 HMAC-SHA256 signature.

    `key` and `timestamp` belong to the signer contract; the default signer
    only needs them through `query`, which already carries the timestamp.
    """
    payload = f"{method}\n{path}\n{query}"
    digest = hmac.new(secret.encode('utf-8'), payload.encode('utf-8'), hashlib.sha256).digest()
    return base64.b64encode(digest).decode('utf-8')


def signed_params(method: str, path: str, params: Mapping[str, str], key: str, secret: str,
                  timestamp: str, signer: Signer = sign) -> Dict[str, str]:
    """Header fields sent with a signed request or the auth subscribe."""
    signature = signer(method, path, canonical_query(params), key, secret, timestamp)
    return {
        "key": key,
        "signature": signature,
        "signTimestamp": str(timestamp),
        "signatureMethod": SIGNATURE_METHOD,
        "signatureVersion": SIGNATURE_VERSION,
    }
