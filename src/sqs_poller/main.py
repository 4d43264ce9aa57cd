"""Main entry point for the SQS poller."""

import asyncio

from sqs_poller.config import get_settings
from sqs_poller.definitions import load_definitions
from sqs_poller.invoker import HandlerInvoker
from sqs_poller.logging import get_logger, setup_logging
from sqs_poller.poller import QueuePoller
from sqs_poller.transport.factory import create_transport


async def main() -> None:
    """Main application entry point."""
    setup_logging()
    log = get_logger("sqs_poller.main")

    settings = get_settings()
    log.info(
        "starting_sqs_poller",
        environment=settings.environment,
        region=settings.region,
        endpoint=settings.endpoint,
        definitions_file=settings.definitions_file,
    )

    definitions = load_definitions(settings.definitions_file)
    log.info(
        "definitions_loaded",
        functions=len(definitions.handlers),
        sqs_events=len(definitions.events),
        resources=len(definitions.resources),
    )

    transport = create_transport(settings)
    poller = QueuePoller(
        settings=settings,
        transport=transport,
        invoker=HandlerInvoker(definitions.handlers),
        catalog=definitions.resources,
    )

    try:
        await poller.create(definitions.events)
        poller.start()
        # Polling runs on scheduler tasks until the process is stopped
        await asyncio.Event().wait()
    except (KeyboardInterrupt, asyncio.CancelledError):
        log.info("shutdown_requested")
    finally:
        poller.stop()
        await poller.close()
        log.info("sqs_poller_stopped")


def run() -> None:
    """Run the application."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
