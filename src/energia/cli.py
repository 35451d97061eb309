"""
Energia CLI

Command-line interactor for the MultiversX energy-factory contract.

Every contract endpoint is a subcommand taking its arguments positionally,
in contract order.  The deployed contract address is kept in state.toml.

Commands:
  deploy    - Deploy the contract and remember its address
  <endpoint> - Call or query an endpoint (see 'energia commands')
  commands  - List the known endpoints and their arguments
  state     - Show the tracked contract address
  genesis   - Create the sender wallet if missing
  whoami    - Show the sender wallet address
  info      - Show configuration
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Optional

import click

from .dispatch import CliArguments, Dispatcher, PlaceholderArguments, render
from .errors import InteractError, UnknownCommand, WalletError
from .pneuma.abi import contract_name, get_code_path, load_bytecode
from .pneuma.catalog import CallKind, Operation, PaymentKind, command_names, lookup
from .pneuma.rpc import GatewayClient, get_gateway_url
from .sigil.wallet import (
    ENERGIA_ENV,
    Wallet,
    generate_wallet,
    get_address,
    get_wallet_path,
    load_env,
    load_wallet,
    save_pem,
)
from .state import Registry, get_state_path


# ============ Constants ============

VERSION = "0.1.0"


@dataclass(frozen=True)
class Settings:
    state_file: Path
    gateway: str
    wallet_pem: Path
    code_path: Path


def _configure_logging(verbosity: int) -> None:
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    env_level = os.environ.get("ENERGIA_LOG")
    if env_level:
        level = logging.getLevelName(env_level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def _open_gateway(url: str) -> GatewayClient:
    return GatewayClient(url)


def _load_wallet(settings: Settings, required: bool) -> Optional[Wallet]:
    try:
        return load_wallet(settings.wallet_pem)
    except WalletError:
        if required:
            raise
        return None


# ============ Main CLI Group ============


class OperationGroup(click.Group):
    """Group whose subcommands also include every catalog operation."""

    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted(super().list_commands(ctx)) + command_names()

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        command = super().get_command(ctx, cmd_name)
        if command is not None:
            return command
        try:
            return _operation_command(lookup(cmd_name))
        except UnknownCommand:
            return None

    def resolve_command(self, ctx: click.Context, args: list[str]):
        cmd_name = args[0] if args else ""
        if cmd_name and not cmd_name.startswith("-") and super().get_command(ctx, cmd_name) is None:
            try:
                lookup(cmd_name)
            except UnknownCommand as exc:
                click.secho(f"ERROR: {exc}", fg="red")
                click.echo("Run 'energia commands' to list the known endpoints.")
                ctx.exit(exc.exit_code)
        return super().resolve_command(ctx, args)


@click.group(cls=OperationGroup)
@click.version_option(version=VERSION, prog_name="energia")
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="ENERGIA_STATE_FILE",
    default=None,
    help="Contract state file (default: ./state.toml)",
)
@click.option(
    "--gateway",
    envvar="MX_GATEWAY",
    default=None,
    help="MultiversX gateway URL (default: devnet)",
)
@click.option(
    "--wallet",
    "wallet_pem",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="WALLET_PEM",
    default=None,
    help="Sender PEM file (default: ~/.energia/wallet.pem)",
)
@click.option(
    "--code",
    "code_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="CONTRACT_CODE",
    default=None,
    help="Contract artifact for deploy (default: output/energy-factory.mxsc.json)",
)
@click.option("-v", "--verbose", count=True, help="Log more (-v info, -vv debug)")
@click.pass_context
def cli(
    ctx: click.Context,
    state_file: Optional[Path],
    gateway: Optional[str],
    wallet_pem: Optional[Path],
    code_path: Optional[Path],
    verbose: int,
) -> None:
    """Energia: energy-factory contract interactor."""
    _configure_logging(verbose)
    ctx.obj = Settings(
        state_file=state_file or get_state_path(),
        gateway=gateway or get_gateway_url(),
        wallet_pem=wallet_pem or get_wallet_path(),
        code_path=code_path or get_code_path(),
    )


# ============ Contract Operations ============


def _operation_command(operation: Operation) -> click.Command:
    descriptor = operation.descriptor
    params: list[click.Parameter] = [click.Argument(["args"], nargs=-1)]

    if descriptor.payment is PaymentKind.ESDT:
        params.append(
            click.Option(["--payment"], metavar="TOKEN:NONCE:AMOUNT", help="Token payment")
        )
    elif descriptor.payment is PaymentKind.EGLD:
        params.append(click.Option(["--egld"], type=int, help="EGLD payment (atomic units)"))
    if descriptor.kind is not CallKind.READ_ONLY:
        params.append(click.Option(["--gas-limit"], type=int, help="Override the gas limit"))
    params.append(
        click.Option(
            ["--placeholders"],
            is_flag=True,
            help="Use zero / empty values for every argument and payment",
        )
    )

    kind = "Query" if descriptor.kind is CallKind.READ_ONLY else "Transaction"
    return click.Command(
        name=descriptor.command,
        params=params,
        callback=partial(_run_operation, descriptor.command),
        help=f"{kind}: {descriptor.signature()}",
        short_help=f"{kind.lower()} {descriptor.endpoint}",
    )


def _run_operation(
    command: str,
    args: tuple[str, ...],
    payment: Optional[str] = None,
    egld: Optional[int] = None,
    gas_limit: Optional[int] = None,
    placeholders: bool = False,
) -> None:
    settings: Settings = click.get_current_context().find_object(Settings)
    operation = lookup(command)

    if placeholders:
        source = PlaceholderArguments()
    else:
        source = CliArguments(tokens=args, payment_text=payment, egld_amount=egld)

    try:
        with Registry.open(settings.state_file) as registry, _open_gateway(settings.gateway) as gateway:
            dispatcher = Dispatcher(
                registry,
                gateway,
                code_loader=partial(load_bytecode, settings.code_path),
                wallet_loader=partial(
                    _load_wallet, settings, required=operation.kind is not CallKind.READ_ONLY
                ),
            )
            outcome = dispatcher.dispatch(command, source, gas_limit=gas_limit)
    except InteractError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        tx_hash = getattr(exc, "tx_hash", None)
        if tx_hash:
            click.echo(f"  TX: {tx_hash}")
        sys.exit(exc.exit_code)

    click.echo(render(command, outcome))
    if outcome.tx_hash:
        click.echo(f"  TX: {outcome.tx_hash}")


# ============ Utility Commands ============


@cli.command("commands")
def list_operations() -> None:
    """List the known endpoints and their arguments."""
    for operation in Operation:
        descriptor = operation.descriptor
        payment = "" if descriptor.payment is PaymentKind.NONE else f"  [{descriptor.payment.value}]"
        click.echo(
            click.style(f"  {descriptor.command:<40}", fg="bright_white", bold=True)
            + click.style(f"{descriptor.kind.value:<10}", fg="cyan")
            + click.style(descriptor.signature(), dim=True)
            + payment
        )


@cli.command()
@click.pass_obj
def state(settings: Settings) -> None:
    """Show the tracked contract address."""
    try:
        registry = Registry.load(settings.state_file)
    except InteractError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(exc.exit_code)

    if registry.has_contract:
        click.echo(f"Contract: {registry.current_address()}")
    else:
        click.echo("No contract deployed.")
        click.echo("Run 'energia deploy' first.")


@cli.command()
@click.pass_obj
def genesis(settings: Settings) -> None:
    """Create the sender wallet if missing."""
    pem_path = settings.wallet_pem
    if pem_path.exists():
        try:
            address = get_address(pem_path)
        except WalletError as exc:
            click.secho(f"ERROR: {exc}", fg="red")
            sys.exit(exc.exit_code)
        click.echo(f"Wallet exists: {pem_path}")
        click.echo(f"Address: {address}")
        return

    seed, wallet = generate_wallet()
    save_pem(seed, pem_path)
    click.secho("Wallet created.", fg="green")
    click.echo(f"  PEM:     {pem_path}")
    click.echo(f"  Address: {wallet.address}")
    click.echo("Fund it from the devnet faucet before sending transactions.")


@cli.command()
@click.pass_obj
def whoami(settings: Settings) -> None:
    """Show the sender wallet address."""
    try:
        address = get_address(settings.wallet_pem)
    except WalletError as exc:
        click.echo("No wallet found.")
        click.echo(str(exc))
        click.echo("Run 'energia genesis' to create one.")
        sys.exit(exc.exit_code)
    click.echo(f"Address: {address}")


@cli.command()
@click.pass_obj
def info(settings: Settings) -> None:
    """Show configuration."""
    click.echo(
        click.style("  ◆ ", fg="cyan")
        + click.style("E N E R G I A", fg="bright_white", bold=True)
        + click.style(f"  v{VERSION}", dim=True)
    )
    click.echo()

    wallet = _load_wallet(settings, required=False)
    try:
        artifact = f"{contract_name(settings.code_path)} ({settings.code_path})"
    except InteractError:
        artifact = f"not built ({settings.code_path})"
    rows = [
        ("Gateway:", settings.gateway),
        ("Wallet:", wallet.address if wallet else f"not found ({settings.wallet_pem})"),
        ("State:", str(settings.state_file)),
        ("Artifact:", artifact),
        ("Config:", str(ENERGIA_ENV)),
    ]
    for label, value in rows:
        click.echo(click.style(f"  {label:<11}", dim=True) + click.style(value, fg="bright_white"))

    try:
        registry = Registry.load(settings.state_file)
        contract = registry.contract_address or "not deployed"
    except InteractError as exc:
        contract = f"unreadable ({exc})"
    click.echo(click.style(f"  {'Contract:':<11}", dim=True) + click.style(contract, fg="bright_white"))
    click.echo()


# ============ Entry Points ============


def main() -> None:
    """Energia CLI entry point."""
    # Ensure UTF-8 output on Windows (for Unicode symbols)
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass  # Fallback: non-tty
    load_env()
    cli()


if __name__ == "__main__":
    main()
