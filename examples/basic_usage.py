"""Basic usage examples for the Zura CRM Python client."""

import asyncio

from zura import (
    AuthenticationError,
    InMemorySessionStore,
    RouteMismatchError,
    SessionMode,
    ZuraClient,
)


async def basic_example():
    """Sign in, then read and update CRM records."""
    async with ZuraClient(
        api_root="http://localhost:4000",
        use_cookies=False,
        store=InMemorySessionStore(mode=SessionMode.TOKEN),
    ) as client:
        # Public page: nothing stored, no network round trip
        if await client.hydration.public_only():
            identity = await client.hydration.signin({"email": "ada@example.com", "password": "secret"})
            print(f"Signed in, org={identity.tenant_id}")

        # List endpoints always come back as plain lists
        leads = await client.leads.list({"status": "new"})
        print(f"\n{len(leads)} new leads")

        # PATCH, transparently retried as PUT on backends without PATCH routes
        if leads:
            updated = await client.leads.update(leads[0]["_id"], {"status": "contacted"})
            print(f"Updated lead {updated.get('_id')}")

        board = await client.deals.kanban()
        print(f"\nKanban columns: {len(board.get('columns', []))}")


async def session_events_example():
    """React to the session being invalidated anywhere."""
    async with ZuraClient(api_root="http://localhost:4000") as client:
        client.session_invalidated.connect(lambda response: print("Session expired, redirecting to /signin"))

        if not await client.hydration.require_auth():
            print("Not signed in")
            return

        try:
            await client.invoices.list()
        except AuthenticationError:
            # session already cleared and listeners notified
            pass


async def users_example():
    """Manage organization users."""
    async with ZuraClient(api_root="http://localhost:4000") as client:
        try:
            users = await client.users.list()
        except RouteMismatchError as e:
            print(f"Users API not mounted (tried {', '.join(e.candidates)})")
            return

        print(f"{len(users)} users via {client.users.base}")
        await client.users.invite("new.hire@example.com", role="user")


async def main():
    """Run all examples."""
    print("=== Basic Example ===")
    await basic_example()

    print("\n=== Session Events Example ===")
    await session_events_example()

    print("\n=== Users Example ===")
    await users_example()


if __name__ == "__main__":
    asyncio.run(main())
