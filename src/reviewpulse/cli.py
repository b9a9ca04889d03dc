"""Command-line interface for ReviewPulse."""

import argparse
import json
import logging
import sys
from datetime import datetime

from diskcache import Cache

from .core.comparison import compare_periods, filter_by_date_range, generate_comparison_periods
from .core.config import settings
from .core.constants import FileConstants
from .core.exceptions import ReviewPulseError
from .core.models import BusinessFilter, parse_review_date
from .services.analytics import ReviewAnalytics
from .services.llm import LLMServiceFactory, RecommendationService
from .services.review_store import ReviewStore, load_reviews_file
from .utils.data_prep import export_to_json, prepare_export, review_to_dict, to_jsonable

logger = logging.getLogger(__name__)


def setup_logging():
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=FileConstants.LOG_FORMAT
    )


def _date_arg(value: str) -> datetime:
    parsed = parse_review_date(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"Invalid date: {value!r} (expected ISO format)")
    return parsed


def _load_reviews(args, business: BusinessFilter):
    if args.file:
        reviews = load_reviews_file(args.file, business)
        if args.start or args.end:
            start = args.start or datetime.min
            end = args.end or datetime.max
            reviews = filter_by_date_range(reviews, start, end)
        return reviews
    return ReviewStore().list_reviews(business, args.start, args.end)


def cmd_fetch(args):
    """Fetch reviews from the review store and save them as JSON."""
    business = BusinessFilter.parse(args.business)
    reviews = ReviewStore().list_reviews(business, args.start, args.end)
    print(f"Fetched {len(reviews)} reviews for {business.describe()}")

    if args.out:
        with open(args.out, 'w', encoding='utf-8') as f:
            json.dump({"reviews": [review_to_dict(r) for r in reviews]}, f, indent=2, ensure_ascii=False)
        print(f"Reviews saved to {args.out}")


def cmd_analyze(args):
    """Analyze command."""
    business = BusinessFilter.parse(args.business)
    reviews = _load_reviews(args, business)
    print(f"Analyzing {len(reviews)} reviews for {business.describe()}...")

    analytics = ReviewAnalytics()
    today = args.today.date() if args.today else None
    analysis = analytics.analyze(reviews, business, today=today, horizon=args.horizon)

    if args.out:
        export_to_json(prepare_export(analysis, reviews, business), args.out)
        print(f"Results exported to {args.out}")

    overview = analysis["overview"]
    print(f"\nAnalysis Summary for {business.describe()}:")
    print(f"Reviews: {overview.count}")
    print(f"Average rating: {overview.avg_rating:.2f}/5")
    print(f"Response rate: {overview.response_rate * 100:.0f}%")
    print(f"Rating trend: {analysis['trend']['rating'].direction.value}")

    if analysis["risks"]:
        print("\nRisks:")
        for risk in analysis["risks"]:
            print(f"  [{risk.severity.value}] {risk.description} ({risk.probability:.0f}%)")
    if analysis["alerts"]:
        print("\nAlerts:")
        for alert in analysis["alerts"]:
            print(f"  [{alert.severity.value}] {alert.title}: {alert.message}")


def cmd_compare(args):
    """Compare two periods, or the standard 30/90-day and year-over-year windows."""
    business = BusinessFilter.parse(args.business)
    reviews = _load_reviews(args, business)

    custom = (args.current_start, args.current_end, args.previous_start, args.previous_end)
    if any(custom):
        if not all(custom):
            print("Custom comparison needs --current-start, --current-end, --previous-start and --previous-end")
            return
        metrics = compare_periods(
            filter_by_date_range(reviews, args.current_start, args.current_end),
            filter_by_date_range(reviews, args.previous_start, args.previous_end),
        )
        periods = [{"label": "Custom Comparison", "current_label": "Current",
                    "previous_label": "Previous", "metrics": metrics}]
    else:
        periods = generate_comparison_periods(reviews)

    for period in periods:
        metrics = period["metrics"]
        print(f"\n{period['label']} ({period['current_label']} vs {period['previous_label']}):")
        for name in ("review_count", "average_rating", "response_rate", "sentiment_score"):
            m = getattr(metrics, name)
            print(f"  {name}: {m.current:.2f} vs {m.previous:.2f} ({m.change_percent:+.1f}%, {m.trend})")
        if metrics.themes.new:
            print(f"  New themes: {', '.join(metrics.themes.new)}")
        if metrics.themes.declining:
            print(f"  Declining themes: {', '.join(metrics.themes.declining)}")

    if args.out:
        export_to_json({"business": business.describe(), "comparisons": to_jsonable(periods)}, args.out)
        print(f"\nResults exported to {args.out}")


def cmd_recommend(args):
    """Generate AI recommendations for the analyzed reviews."""
    business = BusinessFilter.parse(args.business)
    reviews = _load_reviews(args, business)
    analysis = ReviewAnalytics().analyze(reviews, business)

    llm = LLMServiceFactory.create(cache=Cache(settings.cache_dir))
    result = RecommendationService(llm).generate(analysis, reviews)

    print(f"Recommendations for {business.describe()} (source: {result.source})")
    if result.error:
        print(f"Note: {result.error}")
    recs = result.recommendations
    if recs.urgent_actions:
        print("\nUrgent actions:")
        for item in recs.urgent_actions:
            print(f"  - [{item.priority}] {item.title}")
    if recs.growth_strategies:
        print("\nGrowth strategies:")
        for item in recs.growth_strategies:
            print(f"  - {item.title}")
    if recs.pattern_insights:
        print("\nPatterns:")
        for insight in recs.pattern_insights:
            print(f"  - {insight}")
    if recs.summary:
        print(f"\n{recs.summary}")

    if args.out:
        export_to_json(prepare_export(analysis, reviews, business, recommendations=result), args.out)
        print(f"\nResults exported to {args.out}")


def cmd_export(args):
    """Export command."""
    try:
        with open(args.input_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        print(f"Input file {args.input_file} not found")
        return
    except json.JSONDecodeError as e:
        print(f"Invalid JSON in input file: {e}")
        return

    if args.pretty:
        print(json.dumps(data, indent=2, ensure_ascii=False))
    else:
        output_file = args.output or args.input_file.replace('.json', '_export.json')
        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        print(f"Exported to {output_file}")


def _add_source_args(parser):
    parser.add_argument('--business', help='Business name (omit for all businesses)')
    parser.add_argument('--file', help='Read reviews from a JSON file instead of the review store')
    parser.add_argument('--start', type=_date_arg, help='Only reviews published on or after this date')
    parser.add_argument('--end', type=_date_arg, help='Only reviews published on or before this date')
    parser.add_argument('--out', help='Output JSON file')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ReviewPulse - Review Analytics Engine")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    fetch_parser = subparsers.add_parser('fetch', help='Fetch reviews from the review store')
    fetch_parser.add_argument('--business', help='Business name (omit for all businesses)')
    fetch_parser.add_argument('--start', type=_date_arg, help='Start date')
    fetch_parser.add_argument('--end', type=_date_arg, help='End date')
    fetch_parser.add_argument('--out', help='Output JSON file')

    analyze_parser = subparsers.add_parser('analyze', help='Analyze reviews')
    _add_source_args(analyze_parser)
    analyze_parser.add_argument('--today', type=_date_arg, help='Reference date for seasonal risk')
    analyze_parser.add_argument('--horizon', type=int, default=settings.forecast_horizon,
                                help='Number of months to forecast')

    compare_parser = subparsers.add_parser('compare', help='Compare review periods')
    _add_source_args(compare_parser)
    compare_parser.add_argument('--current-start', type=_date_arg)
    compare_parser.add_argument('--current-end', type=_date_arg)
    compare_parser.add_argument('--previous-start', type=_date_arg)
    compare_parser.add_argument('--previous-end', type=_date_arg)

    recommend_parser = subparsers.add_parser('recommend', help='Generate AI recommendations')
    _add_source_args(recommend_parser)

    export_parser = subparsers.add_parser('export', help='Export analysis results')
    export_parser.add_argument('--in', dest='input_file', required=True, help='Input JSON file')
    export_parser.add_argument('--out', dest='output', help='Output file (optional)')
    export_parser.add_argument('--pretty', action='store_true', help='Pretty print to stdout')

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    setup_logging()

    commands = {
        'fetch': cmd_fetch,
        'analyze': cmd_analyze,
        'compare': cmd_compare,
        'recommend': cmd_recommend,
        'export': cmd_export,
    }
    try:
        commands[args.command](args)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
    except ReviewPulseError as e:
        logger.error(f"Command failed: {e.message}")
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
