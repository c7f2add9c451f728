"""
Command line entry point for barkassa.

Commands:
    demo         Ring up a sample session and show ticket + report
    test-print   Print the printer test page
    open-drawer  Kick the cash drawer
    scan         List nearby Bluetooth devices
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timedelta
from decimal import Decimal

from barkassa.config.settings import Settings, get_settings
from barkassa.core.events import EventBus
from barkassa.core.store import MemoryStore
from barkassa.core.till import Till
from barkassa.hardware.base import TransportError
from barkassa.hardware.printer import create_link
from barkassa.ledger.models import CompanyDetails, PaymentMethod, Product
from barkassa.printing.encoder import EscPosEncoder
from barkassa.printing.manager import PrintManager
from barkassa.printing.receipt import ReceiptFormatter

logger = logging.getLogger(__name__)

DEMO_COMPANY = CompanyDetails(
    name="DE GEZELLIGE BAR",
    address="Grote Markt 1",
    address2="1000 Brussel",
    vat_number="BE0123.456.789",
    website="www.degezelligebar.be",
    footer_message="Bedankt en tot ziens!",
    seller_name="Jan",
    salesmen=("Jan", "Piet"),
)

DEMO_PRODUCTS = [
    Product("1", "Pintje", Decimal("3.20"), Decimal("21"), "amber", stock=100),
    Product("2", "Huiswijn", Decimal("5.50"), Decimal("21"), "red", stock=50),
    Product("3", "Cocktail", Decimal("11.00"), Decimal("21"), "purple", stock=30),
    Product("4", "Frisdrank", Decimal("3.00"), Decimal("21"), "blue", stock=60),
    Product("8", "Chips", Decimal("2.50"), Decimal("21"), "orange", stock=40),
    Product("9", "Cadeaubon", Decimal("20.00"), Decimal("0"), "green", stock=999),
]


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )


def build_print_manager(settings: Settings, mock: bool = False) -> PrintManager:
    link = create_link(settings.printer, mock=mock)
    formatter = ReceiptFormatter(width=settings.printer.line_width, currency=settings.ledger.currency)
    encoder = EscPosEncoder(encoding=settings.printer.encoding, width=settings.printer.line_width)
    return PrintManager(link, EventBus(), formatter, encoder)


class _DemoClock:
    """Advances a minute per reading so tickets get distinct times."""

    def __init__(self, start: datetime):
        self._now = start

    def __call__(self) -> datetime:
        self._now += timedelta(minutes=1)
        return self._now


async def run_demo(settings: Settings, print_it: bool, mock: bool) -> int:
    printer = build_print_manager(settings, mock=mock)
    if print_it and not await printer.connect():
        print("Printer niet verbonden.")
        return 1

    clock = _DemoClock(datetime.now().replace(hour=17, minute=0, second=0, microsecond=0))
    till = Till(MemoryStore(), DEMO_COMPANY, printer, settings, clock=clock)
    till.set_products(DEMO_PRODUCTS)

    till.open_session("100.00")

    for product in (DEMO_PRODUCTS[0], DEMO_PRODUCTS[0], DEMO_PRODUCTS[4]):
        till.add_to_cart(product)
    first = await till.finalize_payment(PaymentMethod.CASH)

    till.add_to_cart(DEMO_PRODUCTS[2])
    till.add_to_cart(DEMO_PRODUCTS[5])
    await till.finalize_payment(PaymentMethod.CARD)

    print(printer.preview_transaction(first, DEMO_COMPANY))

    reconciliation = till.reconcile("108.00")
    closed = till.close_session(reconciliation.counted)
    print(printer.preview_session_report(closed, DEMO_COMPANY))

    if print_it:
        try:
            await till.print_session_report(closed)
        except TransportError as exc:
            print(f"Afdrukken rapport mislukt: {exc}")
            return 1
        finally:
            await printer.disconnect()
    return 0


async def run_printer_job(settings: Settings, job: str, mock: bool) -> int:
    printer = build_print_manager(settings, mock=mock)
    if not await printer.connect():
        print("Printer niet verbonden.")
        return 1
    try:
        if job == "drawer":
            await printer.open_drawer()
        else:
            await printer.print_test_page()
        print(f"OK: {printer.link.device_name}")
        return 0
    except TransportError as exc:
        print(f"Error: {exc}")
        return 1
    finally:
        await printer.disconnect()


async def run_scan(settings: Settings) -> int:
    from barkassa.hardware.printer.ble import BleDiscovery

    discovery = BleDiscovery(timeout=settings.printer.scan_timeout)
    for address, name in await discovery.scan():
        print(f"{address}  {name}")
    return 0


def main() -> int:
    """Main entry point."""
    from dotenv import load_dotenv

    # Load environment variables
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="barkassa",
        description="Bar point-of-sale: tickets, sessions and thermal printing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    p_demo = subparsers.add_parser("demo", help="Run a sample session")
    p_demo.add_argument("--print", dest="print_it", action="store_true", help="Also print the report")
    p_demo.add_argument("--mock", action="store_true", help="Use the mock printer")

    p_test = subparsers.add_parser("test-print", help="Print a test page")
    p_test.add_argument("--mock", action="store_true", help="Use the mock printer")

    p_drawer = subparsers.add_parser("open-drawer", help="Open the cash drawer")
    p_drawer.add_argument("--mock", action="store_true", help="Use the mock printer")

    subparsers.add_parser("scan", help="List nearby Bluetooth devices")

    args = parser.parse_args()

    settings = get_settings()
    setup_logging(args.debug or settings.debug)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "demo":
            return asyncio.run(run_demo(settings, args.print_it, args.mock))
        if args.command == "test-print":
            return asyncio.run(run_printer_job(settings, "test_page", args.mock))
        if args.command == "open-drawer":
            return asyncio.run(run_printer_job(settings, "drawer", args.mock))
        return asyncio.run(run_scan(settings))

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
