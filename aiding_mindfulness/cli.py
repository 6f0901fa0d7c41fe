from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from . import __version__
from .ai import PROVIDERS, AIRecommendationClient
from .config import load_ai_settings, save_ai_settings
from .database import MindfulnessDatabase
from .dates import day_name
from .effectiveness import calculate_effectiveness, stats_for_period
from .emotions import Emotion
from .engine import RecommendationEngine
from .logs import setup_logger
from .models import MoodSample, Session
from .patterns import analyze_patterns
from .paths import database_path, ensure_directories, log_path
from .techniques import TECHNIQUES, Technique

EMOTION_CHOICES = [emotion.value for emotion in Emotion]
TECHNIQUE_CHOICES = [technique.value for technique in Technique]


def _open_database(args: argparse.Namespace) -> MindfulnessDatabase:
    return MindfulnessDatabase(Path(args.db) if args.db else database_path())


def _engine(db: MindfulnessDatabase) -> RecommendationEngine:
    return RecommendationEngine(db, advisor=AIRecommendationClient(load_ai_settings(db)))


def _cmd_recommend(args: argparse.Namespace) -> int:
    db = _open_database(args)
    mood = MoodSample.create(args.emotion, args.intensity)
    recommendation = _engine(db).get_recommendation(mood)
    if args.json:
        print(json.dumps(recommendation.to_dict(), indent=2))
        return 0
    profile = TECHNIQUES[recommendation.technique]
    print(f"Recommended: {profile.name} ({profile.duration_seconds // 60} min, {profile.cycles} cycles)")
    print(recommendation.reasoning)
    if recommendation.personal_note:
        print(recommendation.personal_note)
    print(f"confidence={recommendation.confidence} source={recommendation.source}")
    return 0


def _cmd_stats(args: argparse.Namespace) -> int:
    db = _open_database(args)
    records = db.get_all_entries() if args.journal else db.get_all_sessions()
    stats = _engine(db).get_stats(records)
    period = stats_for_period(db.get_all_sessions(), days=7)
    print(f"current_streak={stats.current_streak}")
    print(f"longest_streak={stats.longest_streak}")
    print(f"total_entries={stats.total_entries}")
    print(f"entries_this_month={stats.entries_this_month}")
    print(f"most_common_emotion={stats.most_common_emotion.value if stats.most_common_emotion else '-'}")
    print(f"last_7_days_sessions={period.total_sessions} completed={period.completed_sessions}")
    print(f"last_7_days_avg_improvement={period.avg_improvement:+g}")
    return 0


def _cmd_effectiveness(args: argparse.Namespace) -> int:
    db = _open_database(args)
    for technique, stats in calculate_effectiveness(db.get_all_sessions()).items():
        if stats is None:
            print(f"{technique.value}: not used yet")
            continue
        print(
            f"{technique.value}: used={stats.times_used} avg_improvement={stats.avg_improvement:+g} "
            f"success_rate={stats.success_rate}% last_used={stats.last_used}"
        )
    return 0


def _cmd_patterns(args: argparse.Namespace) -> int:
    db = _open_database(args)
    patterns = analyze_patterns(db.get_all_sessions())
    if patterns.is_empty:
        print("Not enough sessions to detect patterns yet.")
        return 0
    for day, emotion in sorted(patterns.emotions_by_day.items()):
        print(f"{day_name(day)}: {emotion.value}")
    print(f"preferred_time_of_day={patterns.preferred_time_of_day}")
    technique = patterns.most_used_technique
    print(f"most_used_technique={technique.value if technique else '-'}")
    return 0


def _cmd_log_session(args: argparse.Namespace) -> int:
    db = _open_database(args)
    session = Session.start(MoodSample.create(args.emotion, args.intensity), args.technique)
    if args.after_emotion:
        after = MoodSample.create(args.after_emotion, args.after_intensity)
        session = session.conclude(after, journal_entry=args.note)
    else:
        session = session.abandon()
    db.save_session(session)
    print(f"saved={session.id} completed={int(session.completed)} improvement={session.improvement}")
    return 0


def _cmd_journal(args: argparse.Namespace) -> int:
    db = _open_database(args)
    replaced = db.has_entry_for_today()
    entry = db.save_journal_entry(args.emotion)
    print(f"{'updated' if replaced else 'saved'}={entry.date}")
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    db = _open_database(args)
    print(json.dumps(db.export_data(), indent=2))
    return 0


def _cmd_import(args: argparse.Namespace) -> int:
    db = _open_database(args)
    try:
        text = Path(args.file).read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Could not read {args.file}: {exc.strerror or exc}") from exc
    print(f"imported_sessions={db.import_data(json.loads(text))}")
    return 0


def _cmd_configure(args: argparse.Namespace) -> int:
    db = _open_database(args)
    settings = save_ai_settings(
        db,
        provider=args.provider,
        model=args.model,
        api_key=args.api_key,
        endpoint=args.endpoint,
        timeout_seconds=args.timeout,
    )
    print(
        f"provider={settings.provider} model={settings.model} "
        f"configured={'yes' if settings.is_configured else 'no'}"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aiding-mindfulness")
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    parser.add_argument("--db", help="Path to the SQLite database (defaults to the user data directory)")
    sub = parser.add_subparsers(dest="command")

    recommend = sub.add_parser("recommend", help="Recommend a breathing technique for the current mood")
    recommend.add_argument("--emotion", required=True, choices=EMOTION_CHOICES)
    recommend.add_argument("--intensity", type=int, help="1-10, defaults to the emotion's usual intensity")
    recommend.add_argument("--json", action="store_true", help="Print the recommendation as JSON")
    recommend.set_defaults(func=_cmd_recommend)

    stats = sub.add_parser("stats", help="Show streaks and totals")
    stats.add_argument("--journal", action="store_true", help="Use journal entries instead of sessions")
    stats.set_defaults(func=_cmd_stats)

    sub.add_parser("effectiveness", help="Show per-technique effectiveness").set_defaults(func=_cmd_effectiveness)
    sub.add_parser("patterns", help="Show recurring mood patterns").set_defaults(func=_cmd_patterns)

    log_session = sub.add_parser("log-session", help="Record a practice session")
    log_session.add_argument("--emotion", required=True, choices=EMOTION_CHOICES)
    log_session.add_argument("--intensity", type=int)
    log_session.add_argument("--technique", required=True, choices=TECHNIQUE_CHOICES)
    log_session.add_argument("--after-emotion", choices=EMOTION_CHOICES, help="Mood after; omit for an abandoned session")
    log_session.add_argument("--after-intensity", type=int)
    log_session.add_argument("--note", help="Journal text for the session")
    log_session.set_defaults(func=_cmd_log_session)

    journal = sub.add_parser("journal", help="Record today's journal entry")
    journal.add_argument("--emotion", choices=EMOTION_CHOICES)
    journal.set_defaults(func=_cmd_journal)

    sub.add_parser("export", help="Print all data as JSON").set_defaults(func=_cmd_export)

    import_parser = sub.add_parser("import", help="Import data exported earlier")
    import_parser.add_argument("file")
    import_parser.set_defaults(func=_cmd_import)

    configure = sub.add_parser("configure", help="Store AI provider settings")
    configure.add_argument("--provider", choices=list(PROVIDERS))
    configure.add_argument("--model")
    configure.add_argument("--api-key", help="Pass an empty string to clear the stored key")
    configure.add_argument("--endpoint")
    configure.add_argument("--timeout", type=float)
    configure.set_defaults(func=_cmd_configure)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.version:
        print(__version__)
        return 0
    if not getattr(args, "func", None):
        parser.print_help()
        return 1

    if not args.db:
        ensure_directories()
        setup_logger(log_path())
    try:
        return args.func(args)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
