"""Command line entry point: HTTP listener, mail intake and manual confirmation."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from pgpvalidation.application.nonce import nonce_from_string
from pgpvalidation.domain.errors import InvalidNonceError, ValidationError
from pgpvalidation.infrastructure import Services, build_services, get_settings
from pgpvalidation.infrastructure.confirmation_worker import confirm_and_dispatch


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pgpvalidation", description="OpenPGP key validation service")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the confirmation listener and worker")
    serve.add_argument("--host", default=None, help="Bind address (default: HTTP_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: HTTP_PORT)")

    process = subparsers.add_parser("process-mail", help="Handle one incoming validation request mail")
    process.add_argument("--file", default="-", help="Raw mail file, '-' reads stdin (default)")

    confirm = subparsers.add_parser("confirm-nonce", help="Confirm a nonce and send the signed key")
    confirm.add_argument("--nonce", required=True, help="Hex-encoded nonce from a challenge mail")

    return parser


def serve(services: Services, host: str, port: int) -> int:
    import uvicorn

    from pgpvalidation.api.main import create_app

    uvicorn.run(create_app(services), host=host, port=port, log_level="warning")
    return 0


def process_mail(services: Services, source: str) -> int:
    if source == "-":
        raw_mail = sys.stdin.buffer.read()
    else:
        raw_mail = Path(source).read_bytes()

    responses = services.handle_mail.run(raw_mail)
    sent = sum(services.dispatcher.dispatch(response, "nonce") for response in responses)
    logger.info(f"Sent {sent} of {len(responses)} challenge mails")
    return 0


def confirm_nonce(services: Services, nonce_hex: str) -> int:
    try:
        nonce = nonce_from_string(nonce_hex)
    except InvalidNonceError as e:
        logger.error(f"Invalid nonce: {e}")
        return 2
    return 0 if confirm_and_dispatch(services.confirm_nonce, services.dispatcher, nonce) else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the validation service."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        services = build_services(settings)
    except ValidationError as e:
        logger.error(f"Cannot start: {e}")
        return 1

    if args.command == "serve":
        return serve(services, args.host or settings.http_host, args.port or settings.http_port)
    if args.command == "process-mail":
        return process_mail(services, args.file)
    return confirm_nonce(services, args.nonce)


if __name__ == "__main__":
    raise SystemExit(main())
