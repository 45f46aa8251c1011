#!/usr/bin/env python3
"""
chatrelay CLI — the relay server plus a terminal chat front end.

    COMMAND         ALIASES         WHAT IT DOES
    -------         -------         ----------------------------------
    serve           start, up       Start the relay server
    chat            ask, send       Send a message (or open a REPL)
    sessions        ls              List chat sessions
    new             new-session     Start a new chat session and switch to it
    switch          use             Make another session current
    key             set-key         Store an API key for a provider
    custom          endpoint        Manage custom API endpoints
    providers       models          Show built-in providers and default models
    ping            status, health  Ping a running relay
    export          dump            Export all sessions to JSON
"""

import argparse
import json
import sys

from chatrelay import __version__


def _open_state():
    from chatrelay.config import get_config
    from chatrelay.state import AppState
    from chatrelay.storage.sqlite_store import SQLiteStore

    cfg = get_config()
    return AppState.load(SQLiteStore(cfg["storage"]["sqlite_path"]))


def _client(args):
    from chatrelay.client import RelayClient
    from chatrelay.config import get_config

    client_cfg = get_config().get("client", {})
    url = getattr(args, "url", None) or client_cfg.get("relay_url", "http://127.0.0.1:8000")
    return RelayClient(url, timeout=float(client_cfg.get("timeout", 120)))


def _print_reply(reply):
    marker = "✗" if reply.text.startswith("Error:") else "◀"
    print(f"  {marker} {reply.text}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_serve(args):
    """Start the relay server."""
    import uvicorn
    from chatrelay.config import get_config

    cfg = get_config()
    host = args.host or cfg["server"]["host"]
    port = args.port or cfg["server"]["port"]

    print(f"  chatrelay {__version__} listening on {host}:{port}")
    uvicorn.run(
        "chatrelay.main:app",
        host=host,
        port=port,
        reload=args.reload,
        log_level="info",
    )


def cmd_chat(args):
    """Send one message, or loop reading messages from stdin."""
    from chatrelay.client import send_turn

    state = _open_state()
    client = _client(args)
    session_id = args.session or state.current_session_id
    if session_id and state.get_session(session_id) is None:
        print(f"  ✗  Unknown session: {session_id}", file=sys.stderr)
        return 1

    if args.message:
        reply = send_turn(state, client, " ".join(args.message), args.provider,
                          model=args.model, session_id=session_id)
        _print_reply(reply)
        return 1 if reply.text.startswith("Error:") else 0

    print(f"  Chatting with {args.provider}. Type 'exit' to leave.\n")
    try:
        while True:
            try:
                text = input("  you> ").strip()
            except EOFError:
                break
            if not text:
                continue
            if text.lower() in ("exit", "quit", "q"):
                break
            _print_reply(send_turn(state, client, text, args.provider,
                                   model=args.model, session_id=session_id))
    except KeyboardInterrupt:
        print()
    return 0


def cmd_sessions(args):
    """List sessions, marking the current one."""
    state = _open_state()
    for s in state.sessions:
        mark = "*" if s.id == state.current_session_id else " "
        print(f"  {mark} {s.id}  {s.name:<12} {len(s.messages):>4} messages")
    if args.show and state.current_session:
        print()
        for m in state.current_session.messages:
            who = "you" if m.sender == "user" else "ai "
            print(f"    {who}> {m.text}")
    return 0


def cmd_new(args):
    state = _open_state()
    session = state.create_session()
    print(f"  ✓  {session.name} ({session.id}) is now current")
    return 0


def cmd_switch(args):
    state = _open_state()
    try:
        state.set_current_session(args.session)
    except KeyError as e:
        print(f"  ✗  {e}", file=sys.stderr)
        return 1
    print(f"  ✓  switched to {args.session}")
    return 0


def cmd_key(args):
    """Store an API key for a built-in provider or a custom endpoint id."""
    state = _open_state()
    try:
        state.set_credential(args.provider, args.api_key)
    except ValueError as e:
        print(f"  ✗  {e}", file=sys.stderr)
        return 1
    print(f"  ✓  key stored for {args.provider}")
    return 0


def cmd_custom(args):
    """Add, list or remove custom API endpoints."""
    state = _open_state()

    if args.action == "list":
        if not state.custom_configs:
            print("  (no custom endpoints)")
        for c in state.custom_configs:
            path = c.response_path or "auto"
            print(f"  {c.id}  {c.name or '(unnamed)'}  {c.endpoint}  reply={path}")
        return 0

    if args.action == "remove":
        cfg = state.get_custom_config(args.id_or_name or "")
        if cfg is None:
            print(f"  ✗  no custom endpoint '{args.id_or_name}'", file=sys.stderr)
            return 1
        state.remove_custom_config(cfg.id)
        print(f"  ✓  removed {cfg.name or cfg.id}")
        return 0

    # add
    if not (args.name and args.endpoint and args.api_key):
        print("  ✗  --name, --endpoint and --api-key are required", file=sys.stderr)
        return 1
    cfg = state.add_custom_config(
        name=args.name,
        endpoint=args.endpoint,
        api_key=args.api_key,
        api_key_header_name=args.header,
        api_key_prefix=args.prefix,
        model_param_name=args.model_param,
        messages_param_name=args.messages_param,
        response_path=args.response_path,
    )
    print(f"  ✓  added {cfg.name} as {cfg.id}")
    return 0


def cmd_providers(args):
    from chatrelay.adapters.registry import ProviderRegistry
    from chatrelay.config import get_config

    listing = ProviderRegistry(get_config().get("providers", {})).describe()
    for p in listing["providers"]:
        print(f"  {p['id']:<10} {p['label']:<10} default model: {p['default_model']}")
    print(f"  reserved: {', '.join(listing['reserved'])}")
    return 0


def cmd_ping(args):
    client = _client(args)
    try:
        info = client.health()
    except Exception as e:
        print(f"  ✗  {client.base_url} not answering: {e}", file=sys.stderr)
        return 1
    print(f"  ✓  {client.base_url} up (version {info.get('version', '?')})")
    return 0


def cmd_export(args):
    from chatrelay.config import get_config
    from chatrelay.storage.sqlite_store import SQLiteStore

    store = SQLiteStore(get_config()["storage"]["sqlite_path"])
    data = store.export_sessions()
    with open(args.output, "w") as f:
        json.dump(data, f, indent=2 if args.pretty else None, ensure_ascii=False)
    print(f"  ✓  exported {len(data)} session(s) to {args.output}")
    return 0


# ---------------------------------------------------------------------------
# Parser with aliases
# ---------------------------------------------------------------------------

def _add_command(subparsers, names, help_text, func, setup_fn=None):
    """Register a command under its name and aliases."""
    p = subparsers.add_parser(names[0], help=help_text, aliases=names[1:])
    p.set_defaults(func=func)
    if setup_fn:
        setup_fn(p)
    return p


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chatrelay",
        description="chatrelay — one chat client, many LLM providers.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", "-V", action="version",
        version=f"chatrelay {__version__}",
    )

    sub = parser.add_subparsers(dest="command", metavar="<command>")

    def setup_serve(p):
        p.add_argument("--host", default=None, help="Override listen host")
        p.add_argument("--port", "-p", type=int, default=None, help="Override listen port")
        p.add_argument("--reload", action="store_true", help="Auto-reload on code changes (dev)")

    _add_command(sub, ["serve", "start", "up"], "Start the relay server", cmd_serve, setup_serve)

    def setup_chat(p):
        p.add_argument("message", nargs="*", help="Message text (omit for a REPL)")
        p.add_argument("--provider", "-P", required=True,
                       help="Built-in provider id, or a custom endpoint id/name")
        p.add_argument("--model", "-m", default=None, help="Model override")
        p.add_argument("--session", "-s", default=None, help="Session id (default: current)")
        p.add_argument("--url", "-u", default=None, help="Relay URL (default: from config)")

    _add_command(sub, ["chat", "ask", "send"], "Send a message through the relay", cmd_chat, setup_chat)

    def setup_sessions(p):
        p.add_argument("--show", action="store_true", help="Print the current session's messages")

    _add_command(sub, ["sessions", "ls"], "List chat sessions", cmd_sessions, setup_sessions)
    _add_command(sub, ["new", "new-session"], "Start a new chat session", cmd_new)

    def setup_switch(p):
        p.add_argument("session", help="Session id")

    _add_command(sub, ["switch", "use"], "Make another session current", cmd_switch, setup_switch)

    def setup_key(p):
        p.add_argument("provider", help="Provider id (deepseek, openai, ...) or custom endpoint id")
        p.add_argument("api_key", help="The API key")

    _add_command(sub, ["key", "set-key"], "Store an API key", cmd_key, setup_key)

    def setup_custom(p):
        p.add_argument("action", choices=["add", "list", "remove"])
        p.add_argument("id_or_name", nargs="?", help="Endpoint id or name (remove)")
        p.add_argument("--name")
        p.add_argument("--endpoint")
        p.add_argument("--api-key")
        p.add_argument("--header", default=None, help="API key header name (default: Authorization)")
        p.add_argument("--prefix", default=None, help="API key prefix, e.g. 'Bearer '")
        p.add_argument("--model-param", default=None, help="Body field for the model (default: model)")
        p.add_argument("--messages-param", default=None, help="Body field for messages (default: messages)")
        p.add_argument("--response-path", default=None, help="Dotted path to the reply text")

    _add_command(sub, ["custom", "endpoint"], "Manage custom API endpoints", cmd_custom, setup_custom)
    _add_command(sub, ["providers", "models"], "Show built-in providers", cmd_providers)

    def setup_ping(p):
        p.add_argument("--url", "-u", default=None, help="Relay URL (default: from config)")

    _add_command(sub, ["ping", "status", "health"], "Ping a running relay", cmd_ping, setup_ping)

    def setup_export(p):
        p.add_argument("--output", "-o", default="sessions_export.json", help="Output file")
        p.add_argument("--pretty", action="store_true", help="Pretty-print JSON")

    _add_command(sub, ["export", "dump"], "Export sessions to JSON", cmd_export, setup_export)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0
    return args.func(args) or 0


if __name__ == "__main__":
    sys.exit(main())
