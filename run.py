"""Delve command line.

    python run.py server [--host H] [--port P] [--db URI] [--debug]
    python run.py simulate [--seed N] [--turns N] [--class warrior|thief]
    python run.py scores [--limit N]
    python run.py config-get KEY
    python run.py config-set KEY VALUE

With no subcommand the server starts. Flags win over environment variables
(HOST, PORT, DATABASE_URL); ``--env-file`` loads a dotenv file first.
"""

import argparse
import os
import signal
import sys
from pathlib import Path
from textwrap import dedent

from colorama import Fore, Style
from colorama import init as _color_init
from dotenv import load_dotenv

_color_init()

# plain text when captured or piped
_COLOR_ENABLED = sys.stdout.isatty()

SEVERITY_COLORS = {
    "info": Fore.WHITE,
    "good": Fore.GREEN,
    "warning": Fore.YELLOW,
    "bad": Fore.RED,
    "combat": Fore.MAGENTA,
    "loot": Fore.CYAN,
}

ENV_HELP = dedent(
    """
    environment:
      HOST                     bind address (default 0.0.0.0)
      PORT                     listen port (default 5000)
      DATABASE_URL             SQLAlchemy URI (default sqlite in instance/)
      DELVE_AUTOPLAY_INTERVAL  seconds between bot moves (default 0.3)
      DELVE_LOG_LEVEL          engine trace level: debug|info|warn|error

    try:
      python run.py simulate --seed 42 --turns 500
      python run.py config-set rules '{"leash": 5}'
    """
)


def _load_version() -> str:
    path = Path(__file__).resolve().with_name("VERSION")
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError:
        return "0.1.0"


__version__ = _load_version()


def _paint(text: str, color: str) -> str:
    if not _COLOR_ENABLED:
        return text
    return f"{color}{text}{Style.RESET_ALL}"


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="Delve",
        description="Turn-based dungeon crawler: web server, headless bot runs and admin helpers.",
        epilog=ENV_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--env-file", dest="env_file", help="dotenv file to load before reading the environment")
    parser.add_argument("--version", action="version", version=f"Delve Server {__version__}")
    sub = parser.add_subparsers(dest="command")

    server = sub.add_parser("server", help="run the Flask/Socket.IO server")
    server.add_argument("--host", help="bind address (env HOST)")
    server.add_argument("--port", type=int, help="listen port (env PORT)")
    server.add_argument("--db", dest="db_uri", help="database URI (env DATABASE_URL)")
    server.add_argument("--debug", action="store_true", help="Flask debug mode")

    sim = sub.add_parser("simulate", help="let the autoplay bot dive in the terminal")
    sim.add_argument("--seed", type=int, help="seed for the run")
    sim.add_argument("--turns", type=int, default=1000, help="bot tick cap (default 1000)")
    sim.add_argument("--class", dest="class_key", default="warrior", choices=("warrior", "thief"))
    sim.add_argument("--quiet", action="store_true", help="print only the summary line")
    sim.add_argument("--show-map", action="store_true", help="print the last map")

    scores = sub.add_parser("scores", help="print the high score table")
    scores.add_argument("--limit", type=int, help="rows to show")

    cfg_get = sub.add_parser("config-get", help="print a GameConfig value")
    cfg_get.add_argument("key")

    cfg_set = sub.add_parser("config-set", help="store a raw GameConfig value")
    cfg_set.add_argument("key")
    cfg_set.add_argument("value")

    return parser.parse_args(argv or ["server"])


def run_simulation(seed=None, turns=1000, class_key="warrior", quiet=False, show_map=False, out=None) -> dict:
    """Play one bot-driven run, echoing the event log. Returns a summary dict."""
    from delve.services.autoplay import AutoplayBot
    from delve.services.rules import load_rules
    from delve.services.turn_engine import Game

    out = out or sys.stdout
    game = Game(class_key, rules=load_rules(), seed=seed)
    bot = AutoplayBot()
    ticks = 0
    while ticks < turns and game.player.is_alive:
        action = bot.tick(game)
        ticks += 1
        if action.result is not None and not quiet:
            for ev in action.result.events:
                line = _paint(ev.message, SEVERITY_COLORS.get(ev.severity, Fore.WHITE))
                print(f"[d{game.depth} t{game.turn:>4}] {line}", file=out)
        if action.kind == "idle":
            break

    if show_map:
        visible = None if game.map.fully_revealed else game.visible
        print("\n".join(game.map.to_char_rows(visible, game.player)), file=out)

    summary = game.summary
    result = {
        "ticks": ticks,
        "turns": game.turn,
        "depth": game.depth,
        "alive": game.player.is_alive,
        "level": game.player.level,
        "score": summary.score if summary else max(0, game.depth - 1),
        "cause": summary.cause if summary else None,
    }
    status = _paint("ALIVE", Fore.GREEN) if result["alive"] else _paint("DEAD", Fore.RED)
    line = f"{status} depth={result['depth']} level={result['level']} turns={result['turns']} score={result['score']}"
    if result["cause"]:
        line += f" cause={result['cause']}"
    print(line, file=out)
    return result


def _banner(host, port, db_label, interval) -> str:
    rule = _paint("-" * 40, Fore.MAGENTA)
    rows = [("Host", host), ("Port", port), ("Database", db_label), ("Autoplay", f"{interval}s")]
    body = [f"  {_paint(k + ':', Fore.YELLOW):<12} {_paint(str(v), Fore.GREEN)}" for k, v in rows]
    return "\n".join([rule, "  " + _paint(f"Delve {__version__}", Fore.CYAN + Style.BRIGHT), rule, *body, rule])


def _cmd_server(args, app, host, port, db_label) -> int:
    from delve.logging_utils import log
    from delve.server import start_server

    def _on_sigint(sig, frame):
        print("\n[INFO] Shutting down server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, _on_sigint)
    print(_banner(host, port, db_label, app.config["DELVE_AUTOPLAY_INTERVAL"]))
    log.info(event="startup", host=host, port=port, db=db_label)
    start_server(host=host, port=port, debug=args.debug)
    return 0


def _cmd_simulate(args) -> int:
    run_simulation(
        seed=args.seed,
        turns=args.turns,
        class_key=args.class_key,
        quiet=args.quiet,
        show_map=args.show_map,
    )
    return 0


def _cmd_scores(args) -> int:
    from delve.services.persistence import top_scores

    rows = top_scores(args.limit)
    if not rows:
        print("No high scores yet.")
    for rank, row in enumerate(rows, start=1):
        print(f"{rank:>2}. {row.name:<20} {row.score:>4}  depth {row.depth:<3} {row.class_name or ''}  {row.cause or ''}")
    return 0


def _cmd_config_get(args) -> int:
    from delve.models.models import GameConfig

    value = GameConfig.get(args.key)
    if value is None:
        print(f"[WARN] Key '{args.key}' not found")
        return 1
    print(value)
    return 0


def _cmd_config_set(args) -> int:
    from delve.models.models import GameConfig

    GameConfig.set(args.key, args.value)
    print(f"[OK] Set {args.key}")
    return 0


_OFFLINE_COMMANDS = {
    "simulate": _cmd_simulate,
    "scores": _cmd_scores,
    "config-get": _cmd_config_get,
    "config-set": _cmd_config_set,
}


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if args.env_file:
        load_dotenv(args.env_file)
    else:
        load_dotenv()

    db_uri = getattr(args, "db_uri", None)
    if db_uri:
        # must be set before delve is imported
        os.environ["DATABASE_URL"] = db_uri

    from delve import create_app

    app = create_app()
    if args.command == "server":
        host = args.host or os.getenv("HOST", "0.0.0.0")
        port = args.port or int(os.getenv("PORT", "5000"))
        db_label = db_uri or os.getenv("DATABASE_URL") or "instance/delve.db"
        return _cmd_server(args, app, host, port, db_label)

    with app.app_context():
        return _OFFLINE_COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
