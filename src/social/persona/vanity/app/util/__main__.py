import argparse
import asyncio
import logging
import sys
import aiohttp
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from social.persona.vanity.app.config import Settings
from social.persona.vanity.errors import ClaimException
from social.persona.vanity.registry.claims import count_claims, resolve_claim
from social.persona.vanity.workflow.claim import lookup_existing_account

logger = logging.getLogger(__name__)


async def resolveClaim(settings: Settings, domain: str, username: str) -> int:
    engine = create_async_engine(str(settings.pg_dsn))
    database_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    try:
        async with database_session_maker() as database_session:
            did = await resolve_claim(database_session, domain, username)
            rows = await count_claims(database_session, domain, username)
        print(f"{username}.{domain} {did} ({rows} row(s))")
        return 0
    except ClaimException as e:
        print(str(e), file=sys.stderr)
        return 1
    finally:
        await engine.dispose()


async def lookupProfile(settings: Settings, handle: str) -> int:
    async with aiohttp.ClientSession() as http_session:
        try:
            profile = await lookup_existing_account(http_session, settings, handle)
        except ClaimException as e:
            print(str(e), file=sys.stderr)
            return 1
    print(f"{profile.handle} {profile.did} {profile.display_name or ''}".rstrip())
    return 0


async def realMain() -> int:
    parser = argparse.ArgumentParser(
        prog="persona-vanity-util", description="Vanity username utilities"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser(
        "resolve", help="Resolve a claimed username to its DID"
    )
    resolve.add_argument("domain", help="The domain the username is claimed under.")
    resolve.add_argument("username", help="The username, without the domain.")

    lookup = subparsers.add_parser(
        "lookup", help="Look up an existing Bluesky account"
    )
    lookup.add_argument("handle", help="The handle to look up.")

    args = vars(parser.parse_args())
    command = args.get("command", None)

    settings = Settings()  # type: ignore

    if command == "resolve":
        return await resolveClaim(
            settings, args["domain"].lower(), args["username"].lower()
        )
    elif command == "lookup":
        return await lookupProfile(settings, args["handle"])
    return 2


def main() -> None:
    logging.basicConfig()
    sys.exit(asyncio.run(realMain()))


if __name__ == "__main__":
    main()
