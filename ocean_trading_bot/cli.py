"""Command-line interface for order hashing, signing and configuration checks."""

import click
import json
import sys
from typing import Any, Dict

from .config.manager import ConfigManager, ConfigValidationError, DEFAULT_CONFIG_PATH
from .data.models import Order, SignedOrder
from .errors import OceanError
from .signing.hasher import DEFAULT_STRATEGY, HashStrategy, OrderHasher


def _load_order_file(order_file: str) -> Dict[str, Any]:
    try:
        with open(order_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Order file is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise click.ClickException("Order file must contain a JSON object")
    return data


def _fail(message: str) -> None:
    click.echo(click.style(f"✗ {message}", fg='red'), err=True)
    sys.exit(1)


@click.group()
def cli():
    """Ocean Trading Bot order signing tools."""
    pass


@cli.command()
@click.option('--config-path', '-c', default=DEFAULT_CONFIG_PATH, help='Path to configuration file')
def validate(config_path: str):
    """Validate a configuration file."""
    click.echo(f"Validating configuration: {config_path}")

    try:
        manager = ConfigManager(config_path)
        manager.load_config()
        click.echo(click.style("✓ Configuration is valid", fg='green'))

        # Show configuration summary
        signing = manager.get_section('signing')
        click.echo("\nConfiguration Summary:")
        click.echo(f"  Wallet: {manager.get_wallet_address()}")
        click.echo(f"  Hash strategy: {manager.get_hash_strategy().value}")
        click.echo(f"  Signature mode: {signing['signature_mode']}")
        click.echo(f"  Chain id: {signing.get('chain_id') if signing.get('chain_id') is not None else 'N/A'}")
        click.echo(f"  Key variable: {signing['private_key_env']}")
        click.echo(f"  Transport retries: {manager.get_transport_retries()}")

    except ConfigValidationError as e:
        click.echo(click.style("✗ Configuration validation failed:", fg='red'))
        click.echo(f"  Error: {e.message}")
        if e.field_path:
            click.echo(f"  Field: {e.field_path}")
        if e.expected_type and e.actual_value is not None:
            click.echo(f"  Expected: {e.expected_type}, Got: {e.actual_value}")
        sys.exit(1)


@cli.command('hash')
@click.argument('order_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--strategy', '-s', default=DEFAULT_STRATEGY.value,
              type=click.Choice([s.value for s in HashStrategy]), help='Order hashing strategy')
def hash_command(order_file: str, strategy: str):
    """Print the hash of a JSON order."""
    data = _load_order_file(order_file)
    try:
        order = Order.from_template(data)
        click.echo(OrderHasher(strategy).hash_hex(order))
    except OceanError as e:
        _fail(str(e))


@cli.command()
@click.argument('order_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--config-path', '-c', default=DEFAULT_CONFIG_PATH, help='Path to configuration file')
def sign(order_file: str, config_path: str):
    """Stamp the configured wallet as maker, hash and sign a JSON order."""
    data = _load_order_file(order_file)
    try:
        manager = ConfigManager(config_path)
        manager.load_config()
        key = manager.get_private_key()

        order = Order.from_template(data, maker=manager.get_wallet_address())
        order_hash = OrderHasher(manager.get_hash_strategy()).hash(order)
        signature = manager.get_signer().sign(order_hash, key)

        signed = SignedOrder(order=order, signature=signature, order_hash=order_hash)
        click.echo(json.dumps(signed.to_dict(), indent=2, sort_keys=True))
    except ConfigValidationError as e:
        _fail(f"Configuration error: {e.message}")
    except OceanError as e:
        _fail(str(e))


@cli.command()
@click.option('--config-path', '-c', default=DEFAULT_CONFIG_PATH, help='Path to configuration file')
def address(config_path: str):
    """Print the address controlled by the configured signing key."""
    try:
        manager = ConfigManager(config_path)
        manager.load_config()
        key = manager.get_private_key()
        click.echo(key.address)

        wallet = manager.get_wallet_address()
        if key.address != wallet:
            click.echo(click.style(f"⚠ Key does not control the configured wallet {wallet}", fg='yellow'), err=True)
    except ConfigValidationError as e:
        _fail(f"Configuration error: {e.message}")
    except OceanError as e:
        _fail(str(e))


if __name__ == '__main__':
    cli()
