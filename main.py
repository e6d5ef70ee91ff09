import argparse
import sys
from datetime import datetime, timezone
from rich.console import Console

from config.settings import DATA_URL, HOST, MOCK_DATA_FALLBACK, PORT, SCORING_PRESETS, TRADE_LOG_FILE, get_scoring_config
from core.analyzer import evaluate
from core.errors import SignalEngineError
from data.candle_client import CandleClient
from data.market_hours import MarketHoursGate
from ui.console import print_decision, print_gate_closed
from utils.logger import setup_logger
from utils.trade_logger import TradeLogger

logger = setup_logger("quant_engine")

console = Console(file=sys.__stdout__)


def serve(args) -> int:
    import uvicorn

    logger.info(f"Quant Engine running on port {args.port}")
    uvicorn.run("api.app:app", host=args.host, port=args.port, log_level="info")
    return 0


def analyze(args) -> int:
    """One-shot: fetch, evaluate, render, optionally log."""
    now = datetime.now(timezone.utc)

    if not args.ignore_hours:
        status = MarketHoursGate().is_open(now)
        if not status.open:
            print_gate_closed(console, status)
            return 0

    try:
        config = get_scoring_config(args.preset)
        client = CandleClient(url=args.url or DATA_URL, mock_fallback=args.mock or MOCK_DATA_FALLBACK)
        decision = evaluate(client.get_candles(), config)
    except SignalEngineError as e:
        logger.error(f"Analysis failed: {e}")
        console.print(f"[bold red]Analysis failed:[/] {e}")
        return 1

    print_decision(console, decision)
    if args.log and decision.is_trade:
        TradeLogger(args.log_file).log_decision(decision, timestamp=now)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Quant Engine: index CALL/PUT/WAIT signals")
    sub = parser.add_subparsers(dest="command", required=True)

    p_serve = sub.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default=HOST)
    p_serve.add_argument("--port", type=int, default=PORT)
    p_serve.set_defaults(func=serve)

    p_analyze = sub.add_parser("analyze", help="Evaluate the current candle window once")
    p_analyze.add_argument("--url", default=None, help="Candle endpoint (defaults to DATA_URL)")
    p_analyze.add_argument("--preset", default=None, choices=list(SCORING_PRESETS))
    p_analyze.add_argument("--mock", action="store_true", help="Fall back to synthetic candles if the fetch fails")
    p_analyze.add_argument("--ignore-hours", action="store_true", help="Skip the market hours gate")
    p_analyze.add_argument("--log", action="store_true", help="Append CALL/PUT decisions to the trade log")
    p_analyze.add_argument("--log-file", default=TRADE_LOG_FILE)
    p_analyze.set_defaults(func=analyze)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
