from __future__ import annotations

import argparse
import asyncio
import base64
import json
import mimetypes
import os
import sys
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Sequence

from ..config import describe, load_reference_cnpjs, load_store, load_vision
from ..domain.models import Session
from ..domain.prospect import KnownRootResolver
from ..errors import AuditPackError
from ..export import export_entries
from ..extraction.gateway import ExtractionGateway
from ..logging import get_logger
from ..orchestrator import EntryIngestionOrchestrator, ListSync
from ..paths import expand_abs, find_project_root, session_file, var_dir
from ..state import AppState
from ..store import RestListStore, SessionStore, authenticate

LOG = get_logger("cli-main")


@dataclass
class Services:
    store: RestListStore
    state: AppState
    sync: ListSync
    orchestrator: EntryIngestionOrchestrator
    sessions: SessionStore
    session: Session


def _build_services(script_dir: str) -> Services:
    vision = load_vision(script_dir)
    store_cfg = load_store(script_dir)
    for label, value in describe(vision, store_cfg):
        LOG.debug(f"{label:<16}: {value}")

    store = RestListStore.from_config(store_cfg)
    state = AppState()
    resolver = KnownRootResolver(load_reference_cnpjs(script_dir), store=store)
    sessions = SessionStore(session_file(find_project_root(script_dir)))
    return Services(
        store=store,
        state=state,
        sync=ListSync(store, state),
        orchestrator=EntryIngestionOrchestrator(ExtractionGateway(vision), store, state, resolver),
        sessions=sessions,
        session=sessions.load(),
    )


def _read_photo(path: str) -> str:
    """Read an image file into a data URL, guessing the MIME type from its name."""
    mime, _ = mimetypes.guess_type(path)
    if not mime or not mime.startswith("image/"):
        mime = "image/jpeg"
    with open(path, "rb") as f:
        b64 = base64.b64encode(f.read()).decode("ascii")
    return f"data:{mime};base64,{b64}"


def _run(handler: Callable[[Services, argparse.Namespace], Awaitable[int]], ns: argparse.Namespace) -> int:
    async def _main() -> int:
        services = _build_services(os.getcwd())
        try:
            return await handler(services, ns)
        finally:
            await services.store.aclose()

    try:
        return asyncio.run(_main())
    except AuditPackError as e:
        LOG.error(f"{e.__class__.__name__}: {e}")
        return 1


async def _login(svc: Services, ns: argparse.Namespace) -> int:
    user = await authenticate(svc.store, ns.email, ns.password)
    svc.sessions.save(user)
    lists = await svc.sync.refresh()
    print(f"Logged in as {user.name} ({user.role}); {len(lists)} list(s) available")
    return 0


def _logout(_: argparse.Namespace) -> int:
    SessionStore(session_file(find_project_root(os.getcwd()))).clear()
    print("Logged out")
    return 0


async def _lists(svc: Services, ns: argparse.Namespace) -> int:
    lists = await svc.sync.refresh()
    if ns.json:
        print(json.dumps([lst.to_record() for lst in lists], ensure_ascii=False, indent=2))
        return 0
    if not lists:
        print("Nenhuma lista ativa encontrada")
    for lst in lists:
        print(f"{lst.id}  {lst.status:<9}  {lst.name} • {lst.establishment} • {lst.city}  ({len(lst.entries)} itens)")
    return 0


async def _create_list(svc: Services, ns: argparse.Namespace) -> int:
    lst = await svc.sync.create_list(svc.session, ns.name, ns.establishment, ns.city)
    print(lst.id)
    return 0


async def _close_list(svc: Services, ns: argparse.Namespace) -> int:
    await svc.sync.refresh()
    lst = await svc.sync.close_list(svc.session, ns.list_id)
    print(f"{lst.id} {lst.status}")
    return 0


async def _ingest(svc: Services, ns: argparse.Namespace) -> int:
    if not svc.session.is_authenticated:
        LOG.error("Not logged in. Run 'auditpack login' first.")
        return 2
    photos: List[str] = [_read_photo(expand_abs(p)) for p in ns.photos]
    await svc.sync.refresh()
    entry = await svc.orchestrator.ingest(svc.session, ns.list_id, photos)
    if entry is None:
        return 2
    out = dict(entry.to_record())
    out.pop("photos", None)
    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 0


async def _export(svc: Services, ns: argparse.Namespace) -> int:
    lists = await svc.sync.refresh()
    if ns.list_id:
        lists = [lst for lst in lists if lst.id in ns.list_id]
    output = expand_abs(ns.output) if ns.output else os.path.join(var_dir(find_project_root(os.getcwd())), "exports", "auditpack.xlsx")
    count = export_entries(lists, output)
    print(f"{count} row(s) written to {output}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with subcommand: {provided[:1]}")

    parser = argparse.ArgumentParser(
        prog="auditpack",
        description="Capture packaging photos into inspection lists via a vision model.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    login = subparsers.add_parser("login", help="Authenticate and remember the session locally.")
    login.add_argument("--email", required=True)
    login.add_argument("--password", required=True)
    login.set_defaults(handler=_login)

    logout = subparsers.add_parser("logout", help="Forget the stored session.")
    logout.set_defaults(handler=_logout)

    lists = subparsers.add_parser("lists", help="Show inspection lists (newest first).")
    lists.add_argument("--json", action="store_true", help="Print raw list records")
    lists.set_defaults(handler=_lists)

    create = subparsers.add_parser("create-list", help="Create a new inspection list.")
    create.add_argument("--name", required=True)
    create.add_argument("--establishment", required=True)
    create.add_argument("--city", required=True)
    create.set_defaults(handler=_create_list)

    close = subparsers.add_parser("close-list", help="Close an inspection list.")
    close.add_argument("--list-id", required=True)
    close.set_defaults(handler=_close_list)

    ingest = subparsers.add_parser("ingest", help="Extract one package from photos and add it to a list.")
    ingest.add_argument("--list-id", required=True)
    ingest.add_argument("photos", nargs="+", help="Image files of the same package")
    ingest.set_defaults(handler=_ingest)

    export = subparsers.add_parser("export", help="Export entries to .xlsx or .csv")
    export.add_argument("--output", help="Target file (default: var/exports/auditpack.xlsx)")
    export.add_argument("--list-id", action="append", help="Restrict to these list ids (repeatable)")
    export.set_defaults(handler=_export)

    args = parser.parse_args(provided)
    code = _logout(args) if args.command == "logout" else _run(args.handler, args)
    LOG.info(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
