"""
tonewatch/cli.py
Command-line interface for tonewatch.

USAGE:
  tonewatch --input contacts.json
  tonewatch --input contacts.json --analyze
  tonewatch --input contacts.json --analyze --keyword-only
  tonewatch --input contacts.json --output summary.json

EXAMPLES:
  # Summarize a contact-store export that already carries tone analyses
  tonewatch -i contacts.json

  # Fill in missing analyses with the configured provider, then summarize
  DEEPSEEK_API_KEY=... tonewatch -i contacts.json --analyze -o summary.json
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from tonewatch.aggregators.risk_aggregator import compute_risk_summary
from tonewatch.config import build_provider, load_config
from tonewatch.detectors.tone_detector import analyze_messages
from tonewatch.llm.keyword_adapter import KeywordToneAdapter
from tonewatch.parsers.message_parser import parse_message_file
from tonewatch.report_export import export_summary_json

logger = logging.getLogger(__name__)

# ANSI colors
GREEN  = '\033[92m'
YELLOW = '\033[93m'
RED    = '\033[91m'
CYAN   = '\033[96m'
RESET  = '\033[0m'
BOLD   = '\033[1m'


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog        = 'tonewatch',
        description = 'tonewatch — message tone and risk summary',
        formatter_class = argparse.RawDescriptionHelpFormatter,
        epilog = """
NOTE:
  Risk levels are heuristic screening labels, not clinical assessments.
  A HIGH label means a person should read the message promptly.
        """
    )

    parser.add_argument(
        '--input', '-i',
        required = True,
        type     = Path,
        help     = 'JSON export of contact messages (list or {"messages": [...]})',
    )
    parser.add_argument(
        '--output', '-o',
        default = None,
        type    = Path,
        help    = 'Write the dashboard summary JSON to this path',
    )
    parser.add_argument(
        '--analyze', '-a',
        action  = 'store_true',
        help    = 'Run tone analysis on messages that have none',
    )
    parser.add_argument(
        '--keyword-only', '-k',
        action  = 'store_true',
        help    = 'With --analyze: skip remote providers, use keyword analysis only',
    )
    parser.add_argument(
        '--config-dir',
        type    = Path,
        default = None,
        help    = 'Directory holding tonewatch_config.json (default: cwd)',
    )
    parser.add_argument(
        '--verbose', '-v',
        action  = 'store_true',
        help    = 'Enable debug logging',
    )

    args = parser.parse_args(argv)

    # ── LOGGING SETUP ────────────────────────────────────────
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level   = log_level,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
    )

    # ── VALIDATE INPUT ───────────────────────────────────────
    if not args.input.exists():
        _print(f"{RED}Error: File not found: {args.input}{RESET}")
        sys.exit(1)

    # ── PARSE ────────────────────────────────────────────────
    _step("Parsing messages...")
    t0 = time.time()
    messages = parse_message_file(args.input)
    _ok(f"{len(messages)} messages parsed in {_elapsed(t0)}")

    # ── TONE ANALYSIS ────────────────────────────────────────
    if args.analyze and messages:
        if args.keyword_only:
            provider = KeywordToneAdapter()
        else:
            provider = build_provider(load_config(args.config_dir))
        _step(f"Running tone analysis ({provider.name})...")
        t0 = time.time()

        def progress(current, total):
            pct = int((current / total) * 40) if total else 40
            bar = '█' * pct + '░' * (40 - pct)
            sys.stdout.write(f"\r  [{bar}] {current}/{total}")
            sys.stdout.flush()

        missing = sum(1 for m in messages if m.analysis is None)
        messages = analyze_messages(messages, provider=provider, progress_cb=progress)
        if missing:
            sys.stdout.write('\n')
        _ok(f"{missing} messages analyzed in {_elapsed(t0)}")

    # ── SUMMARY ──────────────────────────────────────────────
    summary = compute_risk_summary(messages)

    _print(f"\n{BOLD}{GREEN}✓ Complete{RESET}")
    _print(f"  Messages          : {summary.total_count:,}")
    _print(f"  Mood trend        : {summary.mood_trend}")
    _print(f"  Safety            : {summary.safety_percentage}%")
    _print(f"  Overall risk      : {summary.overall_risk_level}/100")
    _print(f"\n  Risk breakdown:")
    _print(f"    🔴 HIGH   : {summary.high_count}")
    _print(f"    ⚠  MEDIUM : {summary.medium_count}")
    _print(f"    🟢 LOW    : {summary.low_count}")

    if summary.alerts:
        _print(f"\n  {RED}Alerts (newest first):{RESET}")
        for alert in summary.alerts:
            _print(f"    • {alert.timestamp.isoformat()}  id={alert.message_id}")

    # ── EXPORT ───────────────────────────────────────────────
    if args.output:
        args.output.write_text(export_summary_json(summary), encoding='utf-8')
        _ok(f"Summary written → {args.output}")

    _print("")
    return summary


# ── PRINT HELPERS ────────────────────────────────────────────

def _step(msg):  _print(f"  {CYAN}→{RESET} {msg}")
def _ok(msg):    _print(f"  {GREEN}✓{RESET} {msg}")
def _print(msg): print(msg)

def _elapsed(t0: float) -> str:
    s = time.time() - t0
    return f"{s:.1f}s" if s < 60 else f"{int(s//60)}m {int(s%60)}s"


if __name__ == '__main__':
    main()
