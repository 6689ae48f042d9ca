"""Command-line interface for sns-quill."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from pathlib import Path
from typing import Sequence

from sns_quill.canisters import SnsCanisterIds, load_canister_ids
from sns_quill.cli.config import CLIConfig, load_cli_config
from sns_quill.cli.identity import load_cli_identity, read_source
from sns_quill.cli.operator import Operator, TerminalOperator, read_new_secret
from sns_quill.cli.output import SCANNER_URL, print_messages, print_qr
from sns_quill.cli.reporting import (
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    print_error,
    report,
)
from sns_quill.cli.send import SendOptions, send_all
from sns_quill.client import ReplicaClient
from sns_quill.crypto.accounts import (
    account_identifier_hex,
    neuron_staking_subaccount,
    parse_neuron_id,
    parse_principal,
    parse_subaccount,
)
from sns_quill.crypto.identity import AnonymousIdentity, Identity, load_identity
from sns_quill.crypto.mnemonic import generate_phrase, mnemonic_to_pem, normalize_phrase
from sns_quill.errors import ConfigError, InputValidationError, SnsQuillError
from sns_quill.requests import (
    DEFAULT_UPGRADE_TITLE,
    CallRequest,
    build_account_balance,
    build_configure_dissolve_delay,
    build_get_nervous_system_parameters,
    build_get_open_ticket,
    build_get_proposal,
    build_get_swap_refund,
    build_list_deployed_snses,
    build_list_nervous_system_functions,
    build_list_neurons,
    build_list_proposals,
    build_make_proposal,
    build_neuron_permission,
    build_new_sale_ticket,
    build_register_vote,
    build_sns_canisters_summary,
    build_stake_maturity,
    build_stake_neuron,
    build_swap,
    build_transfer,
    build_upgrade_canister_proposal,
    parse_permissions,
    parse_proposal,
    parse_vote,
    require_one_dissolve_option,
    sign_requests,
)
from sns_quill.signing import Signer, parse_signed_messages
from sns_quill.tokens import parse_delay_seconds, parse_tokens

LOGGER = logging.getLogger(__name__)


def _package_version() -> str:
    try:
        return pkg_version("sns-quill")
    except PackageNotFoundError:
        return "0.0.0+local"


def _add_dry_run(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the message without sending it",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sns-quill",
        description="Offline message signing for SNS governance and ledgers",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"sns-quill {_package_version()}",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to CLI config TOML (default: ~/.sns_quill/config.toml)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log debug output to stderr")
    parser.add_argument("--pem-file", default=None, help="PEM private key, '-' for stdin")
    parser.add_argument("--seed-file", default=None, help="BIP39 seed phrase, '-' for stdin")
    parser.add_argument(
        "--canister-ids-file",
        default=None,
        help="JSON file with the SNS canister ids",
    )
    parser.add_argument("--qr", action="store_true", help="Print signed messages as QR codes")

    sub = parser.add_subparsers(dest="command", required=True)

    public_ids = sub.add_parser("public-ids", help="Print principal, account id and neuron id")
    public_ids.add_argument("--principal-id", default=None)
    public_ids.add_argument("--memo", type=int, default=None)

    balance = sub.add_parser("account-balance", help="Query the SNS ledger balance")
    balance.add_argument("principal")
    balance.add_argument("--subaccount", default=None, help="Subaccount as hex")
    _add_dry_run(balance)

    transfer = sub.add_parser("transfer", help="Sign an SNS token transfer")
    transfer.add_argument("--to", required=True, help="Destination principal")
    transfer.add_argument("--to-subaccount", default=None, help="Destination subaccount as hex")
    transfer.add_argument("--amount", required=True, help="Amount in tokens, e.g. 1.5")
    transfer.add_argument("--fee", default=None, help="Fee in tokens")
    transfer.add_argument("--memo", type=int, default=None)

    stake = sub.add_parser("stake-neuron", help="Sign messages to stake or refresh a neuron")
    stake.add_argument("--memo", type=int, required=True)
    stake.add_argument("--amount", default=None, help="Amount to transfer before claiming")
    stake.add_argument("--fee", default=None)

    dissolve = sub.add_parser(
        "configure-dissolve-delay", help="Sign a dissolve state change for a neuron"
    )
    dissolve.add_argument("neuron_id")
    dissolve.add_argument("--start-dissolving", action="store_true")
    dissolve.add_argument("--stop-dissolving", action="store_true")
    dissolve.add_argument(
        "-a",
        "--additional-dissolve-delay-seconds",
        default=None,
        help="Seconds, or a shorthand such as ONE_WEEK, SIX_MONTHS, EIGHT_YEARS",
    )

    proposal = sub.add_parser("make-proposal", help="Sign a proposal submission")
    proposal.add_argument("neuron_id")
    proposal.add_argument(
        "--proposal",
        required=True,
        help='Proposal JSON, e.g. {"title": ..., "summary": ..., "action": {"Motion": {...}}}',
    )

    upgrade = sub.add_parser(
        "make-upgrade-canister-proposal",
        help="Sign a proposal to upgrade an SNS controlled canister",
    )
    upgrade.add_argument("neuron_id")
    upgrade.add_argument("--title", default=DEFAULT_UPGRADE_TITLE)
    upgrade.add_argument("--url", default="")
    upgrade.add_argument("--summary", default="")
    upgrade.add_argument("--target-canister-id", required=True)
    upgrade.add_argument("--wasm-path", required=True)
    upgrade.add_argument("--canister-upgrade-arg-path", default=None)

    vote = sub.add_parser("register-vote", help="Sign a vote on a proposal")
    vote.add_argument("neuron_id")
    vote.add_argument("--proposal-id", type=int, required=True)
    vote.add_argument("--vote", required=True, help="y or n")

    maturity = sub.add_parser("stake-maturity", help="Sign a stake maturity request")
    maturity.add_argument("neuron_id")
    maturity.add_argument("--percentage", type=int, required=True)

    permission = sub.add_parser("neuron-permission", help="Add or remove neuron permissions")
    permission.add_argument("action", choices=("add", "remove"))
    permission.add_argument("neuron_id")
    permission.add_argument("--principal", required=True)
    permission.add_argument(
        "--permissions",
        nargs="+",
        required=True,
        help="Comma or space separated, e.g. vote,submit-proposal",
    )

    neurons = sub.add_parser("list-neurons", help="Query neurons")
    neurons.add_argument("--limit", type=int, required=True)
    neurons.add_argument("--start-page-at", default=None, help="Neuron id as hex")
    neurons.add_argument("--of-principal", default=None)
    _add_dry_run(neurons)

    proposals = sub.add_parser("list-proposals", help="Query proposals")
    proposals.add_argument("--limit", type=int, required=True)
    proposals.add_argument("--before-proposal", type=int, default=None)
    _add_dry_run(proposals)

    get_proposal = sub.add_parser("get-proposal", help="Query a single proposal")
    get_proposal.add_argument("--proposal-id", type=int, required=True)
    _add_dry_run(get_proposal)

    for name, help_text in (
        ("list-nervous-system-functions", "Query nervous system functions"),
        ("get-nervous-system-parameters", "Query nervous system parameters"),
        ("status", "Fetch the SNS canisters summary"),
        ("list-deployed-snses", "Query SNSes deployed by SNS-W"),
        ("get-open-ticket", "Query the caller's open sale ticket"),
    ):
        _add_dry_run(sub.add_parser(name, help=help_text))

    refund = sub.add_parser("get-swap-refund", help="Sign a swap refund request")
    refund.add_argument("--principal", default=None, help="Defaults to the caller")

    swap = sub.add_parser("swap", help="Sign swap participation messages")
    swap.add_argument("--amount", default=None, help="ICP amount to participate with")
    swap.add_argument("--memo", type=int, default=None)
    swap.add_argument("--notify-only", action="store_true")

    ticket = sub.add_parser("new-sale-ticket", help="Sign a new sale ticket request")
    ticket.add_argument("--amount-icp-e8s", type=int, required=True)
    ticket.add_argument("--subaccount", default=None)

    generate = sub.add_parser("generate", help="Generate a seed phrase and PEM key")
    generate.add_argument("--words", type=int, default=12, choices=(12, 24))
    generate.add_argument("--out-seed-file", default=None)
    generate.add_argument("--to-pem-file", default="identity.pem")
    generate.add_argument("--from-seed-file", default=None)
    generate.add_argument("--overwrite-seed-file", action="store_true")
    generate.add_argument("--overwrite-pem-file", action="store_true")
    generate.add_argument("--disable-encryption", action="store_true")

    qr_code = sub.add_parser("qr-code", help="Print a string as a QR code")
    qr_code.add_argument("string")

    sub.add_parser("scanner-qr-code", help="Print the QR code of the scanner app")

    send = sub.add_parser("send", help="Send signed messages")
    send.add_argument("file_name", help="Signed message JSON, '-' for stdin")
    _add_dry_run(send)
    send.add_argument("--yes", action="store_true", help="Skip confirmation")

    return parser


def _configure_logging(verbose: bool, stderr) -> None:
    logger = logging.getLogger("sns_quill")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


def _canister_ids(args) -> SnsCanisterIds:
    if not args.canister_ids_file:
        raise ConfigError(
            "cannot sign command without knowing the SNS canister ids, "
            "did you forget --canister-ids-file <json-file> ?"
        )
    return load_canister_ids(args.canister_ids_file)


def _identity(args, *, operator: Operator, stdin, required: bool = True) -> Identity:
    return load_cli_identity(
        pem_file=args.pem_file,
        seed_file=args.seed_file,
        operator=operator,
        stdin=stdin,
        required=required,
    )


def _signer(identity: Identity, config: CLIConfig) -> Signer:
    return Signer(identity=identity, ingress_expiry_seconds=config.ingress_expiry_seconds)


def _parse_tokens_opt(value: str | None) -> int | None:
    return parse_tokens(value) if value is not None else None


def _parse_subaccount_opt(value: str | None) -> bytes | None:
    return parse_subaccount(value) if value is not None else None


def _emit(
    calls: Sequence[CallRequest], *, args, identity: Identity, config, stdout, operator
) -> int:
    messages = sign_requests(_signer(identity, config), calls)
    print_messages(stdout, messages, qr=args.qr, operator=operator)
    return EXIT_SUCCESS


def _submit_query(
    call: CallRequest,
    *,
    identity: Identity,
    args,
    config: CLIConfig,
    stdout,
    stderr,
    operator,
    yes: bool = False,
) -> int:
    signer = _signer(identity, config)
    message = signer.sign_message(call.method_name, call.arg, call.target)
    client = None if args.dry_run else ReplicaClient(config=config.transport())
    return send_all(
        client,
        [message],
        options=SendOptions(dry_run=args.dry_run, yes=yes),
        operator=operator,
        stdout=stdout,
        stderr=stderr,
    )


def _run_public_ids(*, args, stdout, stdin, operator) -> int:
    if args.principal_id is not None:
        principal = parse_principal(args.principal_id)
    else:
        principal = _identity(args, operator=operator, stdin=stdin).sender()

    print(f"Principal id: {principal.to_str()}", file=stdout)
    print(f"Account id: {account_identifier_hex(principal)}", file=stdout)
    if args.memo is not None:
        neuron_id = neuron_staking_subaccount(principal, args.memo).hex()
        print(f"SNS neuron id (memo = {args.memo}): {neuron_id}", file=stdout)
    return EXIT_SUCCESS


def _run_transfer(*, args, config, stdout, stdin, operator) -> int:
    to = parse_principal(args.to)
    amount = parse_tokens(args.amount)
    fee = _parse_tokens_opt(args.fee)
    to_subaccount = _parse_subaccount_opt(args.to_subaccount)
    ids = _canister_ids(args)
    identity = _identity(args, operator=operator, stdin=stdin)
    call = build_transfer(
        ids,
        to=to,
        to_subaccount=to_subaccount,
        amount_e8s=amount,
        fee_e8s=fee,
        memo=args.memo,
    )
    return _emit(
        [call], args=args, identity=identity, config=config, stdout=stdout, operator=operator
    )


def _run_stake_neuron(*, args, config, stdout, stdin, operator) -> int:
    amount = _parse_tokens_opt(args.amount)
    fee = _parse_tokens_opt(args.fee)
    ids = _canister_ids(args)
    identity = _identity(args, operator=operator, stdin=stdin)
    calls = build_stake_neuron(
        ids,
        controller=identity.sender(),
        memo=args.memo,
        amount_e8s=amount,
        fee_e8s=fee,
    )
    return _emit(
        calls, args=args, identity=identity, config=config, stdout=stdout, operator=operator
    )


def _run_configure_dissolve_delay(*, args, config, stdout, stdin, operator) -> int:
    delay = args.additional_dissolve_delay_seconds
    require_one_dissolve_option(
        start_dissolving=args.start_dissolving,
        stop_dissolving=args.stop_dissolving,
        additional_dissolve_delay_seconds=0 if delay is not None else None,
    )
    seconds = parse_delay_seconds(delay) if delay is not None else None
    neuron_id = parse_neuron_id(args.neuron_id)
    ids = _canister_ids(args)
    identity = _identity(args, operator=operator, stdin=stdin)
    call = build_configure_dissolve_delay(
        ids,
        neuron_id=neuron_id,
        start_dissolving=args.start_dissolving,
        stop_dissolving=args.stop_dissolving,
        additional_dissolve_delay_seconds=seconds,
    )
    return _emit(
        [call], args=args, identity=identity, config=config, stdout=stdout, operator=operator
    )


def _run_make_proposal(*, args, config, stdout, stdin, operator) -> int:
    neuron_id = parse_neuron_id(args.neuron_id)
    proposal = parse_proposal(args.proposal)
    ids = _canister_ids(args)
    identity = _identity(args, operator=operator, stdin=stdin)
    call = build_make_proposal(ids, neuron_id=neuron_id, proposal=proposal)
    return _emit(
        [call], args=args, identity=identity, config=config, stdout=stdout, operator=operator
    )


def _read_binary(path: str, flag: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise InputValidationError(f"unable to read {flag} {path}: {exc}") from exc


def _run_make_upgrade_canister_proposal(*, args, config, stdout, stdin, operator) -> int:
    neuron_id = parse_neuron_id(args.neuron_id)
    target = parse_principal(args.target_canister_id)
    wasm = _read_binary(args.wasm_path, "--wasm-path")
    upgrade_arg = None
    if args.canister_upgrade_arg_path:
        upgrade_arg = _read_binary(args.canister_upgrade_arg_path, "--canister-upgrade-arg-path")
    ids = _canister_ids(args)
    identity = _identity(args, operator=operator, stdin=stdin)
    call = build_upgrade_canister_proposal(
        ids,
        neuron_id=neuron_id,
        target_canister_id=target,
        wasm=wasm,
        canister_upgrade_arg=upgrade_arg,
        title=args.title,
        url=args.url,
        summary=args.summary,
    )
    return _emit(
        [call], args=args, identity=identity, config=config, stdout=stdout, operator=operator
    )


def _run_register_vote(*, args, config, stdout, stdin, operator) -> int:
    neuron_id = parse_neuron_id(args.neuron_id)
    vote = parse_vote(args.vote)
    ids = _canister_ids(args)
    identity = _identity(args, operator=operator, stdin=stdin)
    call = build_register_vote(ids, neuron_id=neuron_id, proposal_id=args.proposal_id, vote=vote)
    return _emit(
        [call], args=args, identity=identity, config=config, stdout=stdout, operator=operator
    )


def _run_stake_maturity(*, args, config, stdout, stdin, operator) -> int:
    neuron_id = parse_neuron_id(args.neuron_id)
    ids = _canister_ids(args)
    identity = _identity(args, operator=operator, stdin=stdin)
    call = build_stake_maturity(ids, neuron_id=neuron_id, percentage=args.percentage)
    return _emit(
        [call], args=args, identity=identity, config=config, stdout=stdout, operator=operator
    )


def _run_neuron_permission(*, args, config, stdout, stdin, operator) -> int:
    neuron_id = parse_neuron_id(args.neuron_id)
    principal = parse_principal(args.principal)
    permissions = parse_permissions(args.permissions)
    ids = _canister_ids(args)
    identity = _identity(args, operator=operator, stdin=stdin)
    call = build_neuron_permission(
        ids,
        neuron_id=neuron_id,
        add=args.action == "add",
        principal=principal,
        permissions=permissions,
    )
    return _emit(
        [call], args=args, identity=identity, config=config, stdout=stdout, operator=operator
    )


def _run_get_swap_refund(*, args, config, stdout, stdin, operator) -> int:
    ids = _canister_ids(args)
    identity = _identity(args, operator=operator, stdin=stdin)
    principal = parse_principal(args.principal) if args.principal else identity.sender()
    call = build_get_swap_refund(ids, principal=principal)
    return _emit(
        [call], args=args, identity=identity, config=config, stdout=stdout, operator=operator
    )


def _run_swap(*, args, config, stdout, stdin, operator) -> int:
    if args.notify_only and args.amount is not None:
        raise InputValidationError("--amount and --notify-only are mutually exclusive")
    if not args.notify_only:
        if args.amount is None:
            raise InputValidationError("--amount is required unless --notify-only is given")
        if args.memo is None:
            raise InputValidationError("--amount requires --memo")
    amount = _parse_tokens_opt(args.amount)
    ids = _canister_ids(args)
    identity = _identity(args, operator=operator, stdin=stdin)
    calls = build_swap(
        ids,
        buyer=identity.sender(),
        amount_e8s=amount,
        memo=args.memo,
        notify_only=args.notify_only,
    )
    return _emit(
        calls, args=args, identity=identity, config=config, stdout=stdout, operator=operator
    )


def _run_new_sale_ticket(*, args, config, stdout, stdin, operator) -> int:
    subaccount = _parse_subaccount_opt(args.subaccount)
    ids = _canister_ids(args)
    identity = _identity(args, operator=operator, stdin=stdin)
    call = build_new_sale_ticket(ids, amount_icp_e8s=args.amount_icp_e8s, subaccount=subaccount)
    return _emit(
        [call], args=args, identity=identity, config=config, stdout=stdout, operator=operator
    )


def _build_query(args) -> CallRequest:
    if args.command == "list-deployed-snses":
        return build_list_deployed_snses()
    ids = _canister_ids(args)
    if args.command == "account-balance":
        return build_account_balance(
            ids,
            owner=parse_principal(args.principal),
            subaccount=_parse_subaccount_opt(args.subaccount),
        )
    if args.command == "list-neurons":
        start = parse_neuron_id(args.start_page_at) if args.start_page_at else None
        of_principal = parse_principal(args.of_principal) if args.of_principal else None
        return build_list_neurons(
            ids, limit=args.limit, start_page_at=start, of_principal=of_principal
        )
    if args.command == "list-proposals":
        return build_list_proposals(ids, limit=args.limit, before_proposal=args.before_proposal)
    if args.command == "get-proposal":
        return build_get_proposal(ids, proposal_id=args.proposal_id)
    if args.command == "list-nervous-system-functions":
        return build_list_nervous_system_functions(ids)
    if args.command == "get-nervous-system-parameters":
        return build_get_nervous_system_parameters(ids)
    if args.command == "get-open-ticket":
        return build_get_open_ticket(ids)
    if args.command == "status":
        return build_sns_canisters_summary(ids)
    raise InputValidationError(f"unknown query command: {args.command}")


def _run_generate(*, args, stdout, stderr, operator) -> int:
    pem_path = args.to_pem_file
    if pem_path != "-" and Path(pem_path).exists() and not args.overwrite_pem_file:
        raise InputValidationError("PEM file exists and overwrite is not set")
    if args.overwrite_seed_file and not args.out_seed_file:
        raise InputValidationError("--overwrite-seed-file requires --out-seed-file")
    if args.from_seed_file and args.out_seed_file:
        raise InputValidationError("--from-seed-file and --out-seed-file are mutually exclusive")
    seed_path = args.out_seed_file
    if seed_path and seed_path != "-" and Path(seed_path).exists() and not args.overwrite_seed_file:
        raise InputValidationError("seed file exists and overwrite is not set")

    if args.from_seed_file:
        phrase = normalize_phrase(read_source(args.from_seed_file, what="seed file"))
    else:
        phrase = generate_phrase(args.words)

    password = None
    if not args.disable_encryption:
        password = read_new_secret(
            operator,
            "Enter a password to encrypt the PEM: ",
            "Re-enter the password to confirm: ",
        )
    pem = mnemonic_to_pem(phrase, password)
    identity = load_identity(pem, read_password=lambda: password or b"")

    if seed_path and seed_path != "-":
        Path(seed_path).write_text(phrase + "\n", encoding="utf-8")
    elif not args.from_seed_file:
        print(
            f"Your seed phrase: {phrase}\n"
            "This can be used to reconstruct your key in case of emergency, "
            "so write it down and store it in a safe place.",
            file=stderr,
        )

    if pem_path == "-":
        print(pem, file=stdout)
    else:
        Path(pem_path).write_text(pem, encoding="utf-8")

    principal = identity.sender()
    print(f"Principal id: {principal.to_str()}", file=stdout)
    print(f"Account id: {account_identifier_hex(principal)}", file=stdout)
    return EXIT_SUCCESS


def _run_send(*, args, config: CLIConfig, stdout, stderr, stdin, operator) -> int:
    raw = read_source(args.file_name, stdin=stdin, what="message file")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InputValidationError(f"invalid JSON content: {exc}") from exc
    messages = parse_signed_messages(payload)
    client = None if args.dry_run else ReplicaClient(config=config.transport())
    return send_all(
        client,
        messages,
        options=SendOptions(dry_run=args.dry_run, yes=args.yes),
        operator=operator,
        stdout=stdout,
        stderr=stderr,
    )


_SIGNING_HANDLERS = {
    "transfer": _run_transfer,
    "stake-neuron": _run_stake_neuron,
    "configure-dissolve-delay": _run_configure_dissolve_delay,
    "make-proposal": _run_make_proposal,
    "make-upgrade-canister-proposal": _run_make_upgrade_canister_proposal,
    "register-vote": _run_register_vote,
    "stake-maturity": _run_stake_maturity,
    "neuron-permission": _run_neuron_permission,
    "get-swap-refund": _run_get_swap_refund,
    "swap": _run_swap,
    "new-sale-ticket": _run_new_sale_ticket,
}

_QUERY_COMMANDS = frozenset(
    {
        "account-balance",
        "list-neurons",
        "list-proposals",
        "get-proposal",
        "list-nervous-system-functions",
        "get-nervous-system-parameters",
        "list-deployed-snses",
        "get-open-ticket",
        "status",
    }
)

# the swap canister answers these for the sender, so they are signed as the caller
_CALLER_QUERIES = frozenset({"get-open-ticket"})


def _dispatch(*, args, config: CLIConfig, stdout, stderr, stdin, operator: Operator) -> int:
    if args.command == "public-ids":
        return _run_public_ids(args=args, stdout=stdout, stdin=stdin, operator=operator)

    if args.command == "generate":
        return _run_generate(args=args, stdout=stdout, stderr=stderr, operator=operator)

    if args.command == "qr-code":
        print_qr(stdout, args.string)
        return EXIT_SUCCESS

    if args.command == "scanner-qr-code":
        print_qr(stdout, SCANNER_URL)
        return EXIT_SUCCESS

    if args.command == "send":
        return _run_send(
            args=args, config=config, stdout=stdout, stderr=stderr, stdin=stdin, operator=operator
        )

    if args.command in _QUERY_COMMANDS:
        call = _build_query(args)
        if args.command in _CALLER_QUERIES:
            identity = _identity(args, operator=operator, stdin=stdin)
        else:
            identity = AnonymousIdentity()
        # status is an update call but only reads state, so it is not confirmed
        return _submit_query(
            call,
            identity=identity,
            args=args,
            config=config,
            stdout=stdout,
            stderr=stderr,
            operator=operator,
            yes=args.command == "status",
        )

    handler = _SIGNING_HANDLERS.get(args.command)
    if handler is not None:
        return handler(args=args, config=config, stdout=stdout, stdin=stdin, operator=operator)

    print("unknown command", file=stderr)
    return EXIT_VALIDATION_ERROR


def main(
    argv: Sequence[str] | None = None,
    *,
    stdout=sys.stdout,
    stderr=sys.stderr,
    stdin=sys.stdin,
    operator: Operator | None = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose, stderr)

    try:
        config = load_cli_config(args.config)
    except ConfigError as exc:
        return print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    if operator is None:
        operator = TerminalOperator(stdin=stdin, stdout=stdout)

    try:
        return _dispatch(
            args=args,
            config=config,
            stdout=stdout,
            stderr=stderr,
            stdin=stdin,
            operator=operator,
        )
    except SnsQuillError as exc:
        return report(stderr, exc)


if __name__ == "__main__":
    raise SystemExit(main())
