from __future__ import annotations

import io

import pytest
from conftest import ScriptedOperator
from cryptography.hazmat.primitives import serialization

from sns_quill.cli.identity import load_cli_identity, read_pem, read_source
from sns_quill.cli.operator import TerminalOperator, read_new_secret
from sns_quill.crypto.identity import AnonymousIdentity, Secp256k1Identity
from sns_quill.errors import ConfigError, InputValidationError

PHRASE = " ".join(["abandon"] * 11 + ["about"])


def test_read_source_from_file_and_stdin(tmp_path) -> None:
    path = tmp_path / "input.txt"
    path.write_text("hello", encoding="utf-8")
    assert read_source(str(path)) == "hello"
    assert read_source("-", stdin=io.StringIO("piped")) == "piped"

    with pytest.raises(ConfigError, match="cannot read PEM file"):
        read_source(str(tmp_path / "missing.pem"), what="PEM file")


def test_seed_file_is_turned_into_pem(tmp_path) -> None:
    seed = tmp_path / "seed.txt"
    seed.write_text(PHRASE + "\n", encoding="utf-8")

    pem = read_pem(pem_file=None, seed_file=str(seed))
    assert pem is not None
    assert "BEGIN PRIVATE KEY" in pem
    assert read_pem(pem_file=None, seed_file=None) is None


def test_optional_identity_falls_back_to_anonymous() -> None:
    identity = load_cli_identity(
        pem_file=None, seed_file=None, operator=ScriptedOperator(), required=False
    )
    assert isinstance(identity, AnonymousIdentity)


def test_encrypted_pem_prompts_through_operator(tmp_path, secp256k1_key) -> None:
    path = tmp_path / "identity.pem"
    path.write_bytes(
        secp256k1_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.BestAvailableEncryption(b"pw"),
        )
    )
    operator = ScriptedOperator(secrets=[b"pw"])

    identity = load_cli_identity(pem_file=str(path), seed_file=None, operator=operator)
    assert isinstance(identity, Secp256k1Identity)
    assert operator.prompts == ["PEM decryption password: "]


def test_terminal_operator_confirm_reads_a_line() -> None:
    out = io.StringIO()
    assert TerminalOperator(stdin=io.StringIO("y\n"), stdout=out).confirm("Send?")
    assert "Send?" in out.getvalue()
    assert not TerminalOperator(stdin=io.StringIO("\n"), stdout=out).confirm("Send?")


def test_read_new_secret_requires_matching_non_empty_values() -> None:
    assert read_new_secret(ScriptedOperator(secrets=[b"a", b"a"]), "p", "c") == b"a"
    with pytest.raises(InputValidationError, match="did not match"):
        read_new_secret(ScriptedOperator(secrets=[b"a", b"b"]), "p", "c")
    with pytest.raises(InputValidationError, match="empty"):
        read_new_secret(ScriptedOperator(secrets=[b"", b""]), "p", "c")
