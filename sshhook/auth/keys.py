"""SSH public key parsing and comparison."""

import base64
import binascii

import asyncssh
import structlog
from asyncssh.public_key import decode_ssh_public_key

logger = structlog.get_logger()


def parse_authorized_key(text: str) -> bytes | None:
    """Parse an authorized-key line and return its wire-format key bytes.

    The line has the form ``[options] algorithm base64-key [comment]``, as in
    an OpenSSH ``authorized_keys`` file. Blank and ``#`` lines are skipped and
    the first line holding a key wins. PEM, PKCS#8 and RFC 4716 encodings are
    not authorized-key lines and are rejected.

    Returns:
        The canonical key material, or None if no line can be parsed
    """
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        data = _parse_key_fields(line)
        if data is None:
            rest = _skip_options(line)
            if rest:
                data = _parse_key_fields(rest)
        if data is not None:
            return data

    return None


def _parse_key_fields(line: str) -> bytes | None:
    """Parse ``algorithm base64-key [comment]``."""
    fields = line.split(None, 2)
    if len(fields) < 2:
        return None
    algorithm, encoded = fields[0], fields[1]

    try:
        blob = base64.b64decode(encoded, validate=True)
        key = decode_ssh_public_key(blob)
    except (binascii.Error, asyncssh.KeyImportError, ValueError) as e:
        logger.debug("Failed to parse public key", algorithm=algorithm, error=str(e))
        return None

    if key.get_algorithm() != algorithm:
        logger.debug(
            "Public key algorithm mismatch",
            algorithm=algorithm,
            key_algorithm=key.get_algorithm(),
        )
        return None

    return key.public_data


def _skip_options(line: str) -> str | None:
    """Drop a leading options field, which may contain quoted whitespace."""
    in_quotes = False
    escaped = False
    for index, char in enumerate(line):
        if escaped:
            escaped = False
        elif char == "\\" and in_quotes:
            escaped = True
        elif char == '"':
            in_quotes = not in_quotes
        elif char in " \t" and not in_quotes:
            return line[index:].lstrip()
    return None


def keys_match(supplied: str, configured: str) -> bool:
    """Check whether two authorized-key lines hold the same key."""
    supplied_data = parse_authorized_key(supplied)
    if supplied_data is None:
        logger.warning("Failed to parse client public key")
        return False

    configured_data = parse_authorized_key(configured)
    if configured_data is None:
        logger.warning("Failed to parse configured public key")
        return False

    return supplied_data == configured_data
