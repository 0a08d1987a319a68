"""Protean Engine runner for the ordering domain.

Starts Engine workers that process events asynchronously, most importantly
the NotificationDispatcher that drains the email outbox and the catalog
mirror's event handler.

Usage:
    python src/server.py
"""

import asyncio

from protean.server.engine import Engine

from ordering.utils.logging import configure_logging


def _get_domain():
    from ordering.domain import ordering

    ordering.init()
    return ordering


async def run():
    engine = Engine(_get_domain())
    await engine.run()


def main():
    configure_logging(log_file_prefix="dropstream_engine")
    asyncio.run(run())


if __name__ == "__main__":
    main()
