"""Unit tests for SSH public key parsing."""

import asyncssh

from sshhook.auth.keys import keys_match, parse_authorized_key


def generate_authorized_key(alg: str = "ssh-ed25519", comment: str = "test@example.com") -> str:
    """Generate a fresh key and return its authorized-key line."""
    key = asyncssh.generate_private_key(alg, comment=comment)
    return key.export_public_key("openssh").decode().strip()


class TestParseAuthorizedKey:
    """Test parse_authorized_key."""

    def test_parse_valid_key(self) -> None:
        """Test that a valid line yields the wire-format key bytes."""
        line = generate_authorized_key()

        data = parse_authorized_key(line)

        assert data is not None
        assert data == asyncssh.import_public_key(line).public_data

    def test_parse_without_comment(self) -> None:
        """Test that the comment is optional."""
        line = generate_authorized_key()
        alg, b64, _ = line.split(" ", 2)

        assert parse_authorized_key(f"{alg} {b64}") == parse_authorized_key(line)

    def test_comment_and_whitespace_ignored(self) -> None:
        """Test that comment text and surrounding whitespace do not matter."""
        line = generate_authorized_key(comment="alice@laptop")
        alg, b64, _ = line.split(" ", 2)

        assert parse_authorized_key(f"  {alg} {b64} someone-else@desktop \n") == (
            parse_authorized_key(line)
        )

    def test_round_trip(self) -> None:
        """Test that re-encoding a parsed key keeps its canonical form."""
        line = generate_authorized_key()
        reencoded = asyncssh.import_public_key(line).export_public_key("openssh").decode()

        assert parse_authorized_key(reencoded) == parse_authorized_key(line)

    def test_parse_rsa_key(self) -> None:
        """Test parsing an RSA key."""
        assert parse_authorized_key(generate_authorized_key("ssh-rsa")) is not None

    def test_options_prefix(self) -> None:
        """Test that a leading authorized_keys options field is skipped."""
        line = generate_authorized_key()

        assert parse_authorized_key(f'from="10.0.0.1",no-pty {line}') == (
            parse_authorized_key(line)
        )

    def test_options_with_quoted_whitespace(self) -> None:
        line = generate_authorized_key()

        assert parse_authorized_key(f'command="echo \\"hi there\\"" {line}') == (
            parse_authorized_key(line)
        )

    def test_comment_lines_skipped(self) -> None:
        line = generate_authorized_key()

        assert parse_authorized_key(f"# deploy key\n\n{line}\n") == parse_authorized_key(line)

    def test_algorithm_mismatch(self) -> None:
        """Test that the algorithm field must name the encoded key type."""
        _, b64, _ = generate_authorized_key("ssh-ed25519").split(" ", 2)

        assert parse_authorized_key(f"ssh-rsa {b64}") is None

    def test_pem_rejected(self) -> None:
        """Test that a PKCS#8 PEM public key is not an authorized-key line."""
        key = asyncssh.generate_private_key("ssh-ed25519")
        pem = key.export_public_key("pkcs8-pem").decode()

        assert parse_authorized_key(pem) is None

    def test_rfc4716_rejected(self) -> None:
        """Test that an RFC 4716 block is not an authorized-key line."""
        key = asyncssh.generate_private_key("ssh-ed25519", comment="alice@laptop")
        block = key.export_public_key("rfc4716").decode()

        assert parse_authorized_key(block) is None

    def test_parse_garbage(self) -> None:
        """Test that invalid input yields None."""
        assert parse_authorized_key("") is None
        assert parse_authorized_key("   ") is None
        assert parse_authorized_key("not a key") is None
        assert parse_authorized_key("ssh-rsa !!!notbase64!!!") is None
        assert parse_authorized_key("ssh-rsa AAAAB3... user2@example.com") is None


class TestKeysMatch:
    """Test keys_match."""

    def test_same_key(self) -> None:
        line = generate_authorized_key()

        assert keys_match(line, line)

    def test_same_key_different_comment(self) -> None:
        line = generate_authorized_key(comment="one")
        alg, b64, _ = line.split(" ", 2)

        assert keys_match(f"{alg} {b64} two", line)

    def test_different_keys(self) -> None:
        assert not keys_match(generate_authorized_key(), generate_authorized_key())

    def test_unparseable_supplied_key(self) -> None:
        assert not keys_match("garbage", generate_authorized_key())

    def test_unparseable_configured_key(self) -> None:
        assert not keys_match(generate_authorized_key(), "garbage")

    def test_options_prefixed_key_matches(self) -> None:
        line = generate_authorized_key()

        assert keys_match(line, f'no-agent-forwarding,from="10.0.0.0/8" {line}')
