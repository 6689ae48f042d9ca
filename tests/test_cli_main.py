from __future__ import annotations

import io
import json

from conftest import CANISTER_IDS, ScriptedOperator
from ic.candid import Types, encode

from sns_quill.candid import Method, encode_args
from sns_quill.canisters import TargetCanister, TargetRole
from sns_quill.cli.main import main
from sns_quill.crypto.accounts import account_identifier_hex, neuron_staking_subaccount
from sns_quill.crypto.identity import AnonymousIdentity, load_identity
from sns_quill.signing import IngressWithRequestId, Signer

DESTINATION = "rdmx6-jaaaa-aaaaa-aaadq-cai"
NEURON_HEX = "11" * 32


class _NoNetwork:
    def __init__(self, *, config) -> None:  # noqa: ARG002
        raise AssertionError("no replica client should be created")


def _run(argv, *, operator=None, stdin=None):
    out = io.StringIO()
    err = io.StringIO()
    rc = main(
        argv,
        stdout=out,
        stderr=err,
        stdin=stdin or io.StringIO(""),
        operator=operator or ScriptedOperator(),
    )
    return rc, out.getvalue(), err.getvalue()


def _signed(pem_file, canister_ids_file, *argv):
    return ["--pem-file", str(pem_file), "--canister-ids-file", str(canister_ids_file), *argv]


def test_transfer_signs_one_ledger_message(pem_file, canister_ids_file, monkeypatch) -> None:
    monkeypatch.setattr("sns_quill.cli.main.ReplicaClient", _NoNetwork)

    rc, out, err = _run(
        _signed(pem_file, canister_ids_file, "transfer", "--to", DESTINATION, "--amount", "1.5")
    )
    assert rc == 0, err

    messages = json.loads(out)
    assert len(messages) == 1
    message = IngressWithRequestId.model_validate(messages[0])
    parsed = message.ingress.parse()
    assert parsed.canister_id == CANISTER_IDS["ledger_canister_id"]
    assert parsed.method_name == "icrc1_transfer"

    expected = {
        "to": {"owner": DESTINATION, "subaccount": []},
        "fee": [],
        "memo": [],
        "from_subaccount": [],
        "created_at_time": [],
        "amount": 150_000_000,
    }
    assert parsed.arg == encode_args(Method.ICRC1_TRANSFER, [expected])

    identity = load_identity(pem_file.read_text(encoding="utf-8"))
    assert parsed.sender == identity.sender().to_str()


def test_conflicting_dissolve_flags_fail_before_signing(monkeypatch) -> None:
    monkeypatch.setattr("sns_quill.cli.main.ReplicaClient", _NoNetwork)

    rc, out, err = _run(
        ["configure-dissolve-delay", NEURON_HEX, "--start-dissolving", "--stop-dissolving"]
    )
    assert rc == 1
    assert out == ""
    assert "mutually exclusive" in err


def test_configure_dissolve_delay_accepts_shorthand(pem_file, canister_ids_file) -> None:
    rc, out, err = _run(
        _signed(
            pem_file, canister_ids_file, "configure-dissolve-delay", NEURON_HEX, "-a", "ONE_YEAR"
        )
    )
    assert rc == 0, err
    assert len(json.loads(out)) == 1


def test_stake_neuron_without_amount_signs_only_the_claim(pem_file, canister_ids_file) -> None:
    rc, out, err = _run(_signed(pem_file, canister_ids_file, "stake-neuron", "--memo", "7"))
    assert rc == 0, err

    messages = json.loads(out)
    assert len(messages) == 1
    parsed = IngressWithRequestId.model_validate(messages[0]).ingress.parse()
    assert parsed.method_name == "manage_neuron"
    assert parsed.canister_id == CANISTER_IDS["governance_canister_id"]


def test_stake_neuron_with_amount_signs_transfer_and_claim(pem_file, canister_ids_file) -> None:
    rc, out, err = _run(
        _signed(pem_file, canister_ids_file, "stake-neuron", "--memo", "7", "--amount", "2")
    )
    assert rc == 0, err
    methods = [
        IngressWithRequestId.model_validate(item).ingress.parse().method_name
        for item in json.loads(out)
    ]
    assert methods == ["icrc1_transfer", "manage_neuron"]


def test_qr_output_pauses_between_messages(pem_file, canister_ids_file) -> None:
    operator = ScriptedOperator()
    argv = _signed(pem_file, canister_ids_file, "stake-neuron", "--memo", "1", "--amount", "1")
    rc, out, err = _run(
        ["--qr", *argv],
        operator=operator,
    )
    assert rc == 0, err
    assert operator.pauses == 1
    assert out.strip()


def test_signing_requires_canister_ids(pem_file) -> None:
    rc, _, err = _run(
        ["--pem-file", str(pem_file), "transfer", "--to", DESTINATION, "--amount", "1"]
    )
    assert rc == 1
    assert "--canister-ids-file" in err


def test_signing_requires_key_material(canister_ids_file) -> None:
    rc, _, err = _run(
        [
            "--canister-ids-file",
            str(canister_ids_file),
            "transfer",
            "--to",
            DESTINATION,
            "--amount",
            "1",
        ]
    )
    assert rc == 1
    assert "cannot use anonymous principal" in err


def test_pem_and_seed_are_mutually_exclusive(pem_file, canister_ids_file, tmp_path) -> None:
    seed = tmp_path / "seed.txt"
    seed.write_text("abandon " * 11 + "about\n", encoding="utf-8")
    rc, _, err = _run(
        [
            "--seed-file",
            str(seed),
            *_signed(pem_file, canister_ids_file, "stake-neuron", "--memo", "1"),
        ]
    )
    assert rc == 1
    assert "mutually exclusive" in err


def test_invalid_amount_is_an_input_error(pem_file, canister_ids_file) -> None:
    rc, _, err = _run(
        _signed(pem_file, canister_ids_file, "transfer", "--to", DESTINATION, "--amount", "1.2.3")
    )
    assert rc == 1
    assert err.startswith("input error:")


def test_public_ids_for_principal_and_memo() -> None:
    rc, out, err = _run(["public-ids", "--principal-id", "2vxsx-fae", "--memo", "7"])
    assert rc == 0, err

    anonymous = AnonymousIdentity().sender()
    assert "Principal id: 2vxsx-fae" in out
    assert f"Account id: {account_identifier_hex(anonymous)}" in out
    assert neuron_staking_subaccount(anonymous, 7).hex() in out


def test_public_ids_from_pem(pem_file) -> None:
    rc, out, err = _run(["--pem-file", str(pem_file), "public-ids"])
    assert rc == 0, err
    principal = load_identity(pem_file.read_text(encoding="utf-8")).sender().to_str()
    assert f"Principal id: {principal}" in out


def test_public_ids_reads_pem_from_stdin(pem_file) -> None:
    rc, out, err = _run(
        ["--pem-file", "-", "public-ids"],
        stdin=io.StringIO(pem_file.read_text(encoding="utf-8")),
    )
    assert rc == 0, err
    assert "Principal id:" in out


def test_generate_writes_seed_and_pem(tmp_path) -> None:
    pem_path = tmp_path / "out.pem"
    seed_path = tmp_path / "seed.txt"
    rc, out, err = _run(
        [
            "generate",
            "--disable-encryption",
            "--to-pem-file",
            str(pem_path),
            "--out-seed-file",
            str(seed_path),
        ]
    )
    assert rc == 0, err
    assert len(seed_path.read_text(encoding="utf-8").split()) == 12

    principal = load_identity(pem_path.read_text(encoding="utf-8")).sender().to_str()
    assert f"Principal id: {principal}" in out

    rc, _, err = _run(["generate", "--disable-encryption", "--to-pem-file", str(pem_path)])
    assert rc == 1
    assert "overwrite" in err


def test_generate_encrypts_pem_with_confirmed_password(tmp_path) -> None:
    pem_path = tmp_path / "out.pem"
    operator = ScriptedOperator(secrets=[b"hunter2", b"hunter2"])
    rc, _, err = _run(["generate", "--to-pem-file", str(pem_path)], operator=operator)
    assert rc == 0, err
    assert "ENCRYPTED PRIVATE KEY" in pem_path.read_text(encoding="utf-8")
    assert "Your seed phrase:" in err

    mismatch = ScriptedOperator(secrets=[b"a", b"b"])
    rc, _, err = _run(
        ["generate", "--to-pem-file", str(tmp_path / "other.pem")], operator=mismatch
    )
    assert rc == 1
    assert "did not match" in err


def test_send_dry_run_prints_without_network(
    pem_file, canister_ids_file, tmp_path, monkeypatch
) -> None:
    monkeypatch.setattr("sns_quill.cli.main.ReplicaClient", _NoNetwork)
    rc, signed, err = _run(
        _signed(pem_file, canister_ids_file, "transfer", "--to", DESTINATION, "--amount", "1")
    )
    assert rc == 0, err
    message_file = tmp_path / "message.json"
    message_file.write_text(signed, encoding="utf-8")

    rc, out, err = _run(["send", "--dry-run", str(message_file)])
    assert rc == 0, err
    assert "Sending message with" in out
    assert "Method name: icrc1_transfer" in out
    assert f"Canister id: {CANISTER_IDS['ledger_canister_id']}" in out
    assert "Request ID" not in out


def test_send_reads_messages_from_stdin(pem_file, canister_ids_file, monkeypatch) -> None:
    monkeypatch.setattr("sns_quill.cli.main.ReplicaClient", _NoNetwork)
    _, signed, _ = _run(_signed(pem_file, canister_ids_file, "stake-neuron", "--memo", "3"))

    rc, out, err = _run(["send", "--dry-run", "-"], stdin=io.StringIO(signed))
    assert rc == 0, err
    assert "Method name: manage_neuron" in out


def test_send_rejects_malformed_json(tmp_path) -> None:
    path = tmp_path / "message.json"
    path.write_text("{not json", encoding="utf-8")
    rc, _, err = _run(["send", "--dry-run", str(path)])
    assert rc == 1
    assert "invalid JSON" in err


def test_unsupported_response_exits_with_decoding_code(tmp_path, monkeypatch) -> None:
    class _Client:
        def __init__(self, *, config) -> None:
            self.config = config

        def query(self, canister_id: str, content: bytes) -> bytes:
            return encode([{"type": Types.Nat, "value": 10_000}])

    monkeypatch.setattr("sns_quill.cli.main.ReplicaClient", _Client)

    ledger = TargetCanister(role=TargetRole.LEDGER, canister_id=CANISTER_IDS["ledger_canister_id"])
    message = Signer(identity=AnonymousIdentity()).sign_call("icrc1_fee", encode([]), ledger)
    path = tmp_path / "message.json"
    path.write_text(message.model_dump_json(), encoding="utf-8")

    rc, _, err = _run(["send", str(path)])
    assert rc == 4
    assert "icrc1_fee is not a supported response" in err


def test_query_command_is_sent_anonymously(canister_ids_file, monkeypatch) -> None:
    captured: dict[str, object] = {}

    class _Client:
        def __init__(self, *, config) -> None:
            captured["ic_url"] = config.ic_url

        def query(self, canister_id: str, content: bytes) -> bytes:
            captured["canister_id"] = canister_id
            return encode([{"type": Types.Nat, "value": 42}])

    monkeypatch.setattr("sns_quill.cli.main.ReplicaClient", _Client)
    monkeypatch.setenv("IC_URL", "http://127.0.0.1:4943")

    rc, out, err = _run(
        ["--canister-ids-file", str(canister_ids_file), "account-balance", "2vxsx-fae"]
    )
    assert rc == 0, err
    assert "Sender:      2vxsx-fae" in out
    assert "Response: 42" in out
    assert captured == {
        "ic_url": "http://127.0.0.1:4943",
        "canister_id": CANISTER_IDS["ledger_canister_id"],
    }


def test_status_is_not_confirmed(canister_ids_file, monkeypatch) -> None:
    calls: list[str] = []

    class _Client:
        def __init__(self, *, config) -> None:
            self.config = config

        def call(self, canister_id: str, content: bytes, request_id: str) -> None:
            calls.append(canister_id)

        def wait_for_status(self, message) -> bytes:
            return encode([{"type": Types.Nat, "value": 1}])

    monkeypatch.setattr("sns_quill.cli.main.ReplicaClient", _Client)
    operator = ScriptedOperator(confirms=[False])

    rc, out, err = _run(
        ["--canister-ids-file", str(canister_ids_file), "status"], operator=operator
    )
    assert rc == 0, err
    assert calls == [CANISTER_IDS["root_canister_id"]]
    assert operator.prompts == []
    assert "Response: 1" in out


def test_list_deployed_snses_dry_run_needs_no_ids(monkeypatch) -> None:
    monkeypatch.setattr("sns_quill.cli.main.ReplicaClient", _NoNetwork)
    rc, out, err = _run(["list-deployed-snses", "--dry-run"])
    assert rc == 0, err
    assert "Method name: list_deployed_snses" in out
    assert "Call type:   query" in out
    assert "Arguments:   [{}]" in out


def test_missing_config_file_is_reported(tmp_path) -> None:
    rc, _, err = _run(["--config", str(tmp_path / "nope.toml"), "public-ids"])
    assert rc == 1
    assert err.startswith("config error:")


def _single_message(out: str):
    messages = json.loads(out)
    assert len(messages) == 1
    return IngressWithRequestId.model_validate(messages[0]).ingress.parse()


def test_get_swap_refund_defaults_to_the_caller(pem_file, canister_ids_file) -> None:
    rc, out, err = _run(_signed(pem_file, canister_ids_file, "get-swap-refund"))
    assert rc == 0, err

    parsed = _single_message(out)
    caller = load_identity(pem_file.read_text(encoding="utf-8")).sender().to_str()
    assert parsed.sender == caller
    assert parsed.canister_id == CANISTER_IDS["swap_canister_id"]
    assert parsed.method_name == "error_refund_icp"
    assert parsed.arg == encode_args(
        Method.ERROR_REFUND_ICP, [{"source_principal_id": [caller]}]
    )

    rc, out, err = _run(
        _signed(pem_file, canister_ids_file, "get-swap-refund", "--principal", DESTINATION)
    )
    assert rc == 0, err
    assert _single_message(out).arg == encode_args(
        Method.ERROR_REFUND_ICP, [{"source_principal_id": [DESTINATION]}]
    )


def test_new_sale_ticket_carries_the_subaccount(pem_file, canister_ids_file) -> None:
    rc, out, err = _run(
        _signed(
            pem_file,
            canister_ids_file,
            "new-sale-ticket",
            "--amount-icp-e8s",
            "500000000",
            "--subaccount",
            "0a0b",
        )
    )
    assert rc == 0, err

    parsed = _single_message(out)
    assert parsed.canister_id == CANISTER_IDS["swap_canister_id"]
    assert parsed.method_name == "new_sale_ticket"
    subaccount = list(bytes.fromhex("0a0b").rjust(32, b"\x00"))
    assert parsed.arg == encode_args(
        Method.NEW_SALE_TICKET,
        [{"amount_icp_e8s": 500_000_000, "subaccount": [subaccount]}],
    )


def test_get_open_ticket_is_sent_as_the_caller(pem_file, canister_ids_file, monkeypatch) -> None:
    monkeypatch.setattr("sns_quill.cli.main.ReplicaClient", _NoNetwork)

    rc, out, err = _run(_signed(pem_file, canister_ids_file, "get-open-ticket", "--dry-run"))
    assert rc == 0, err
    caller = load_identity(pem_file.read_text(encoding="utf-8")).sender().to_str()
    assert f"Sender:      {caller}" in out
    assert f"Canister id: {CANISTER_IDS['swap_canister_id']}" in out
    assert "Method name: get_open_ticket" in out
    assert "Arguments:   [{}]" in out


def test_get_open_ticket_needs_key_material(canister_ids_file) -> None:
    rc, out, err = _run(
        ["--canister-ids-file", str(canister_ids_file), "get-open-ticket", "--dry-run"]
    )
    assert rc == 1
    assert "cannot use anonymous principal" in err
    assert "Sending message" not in out
