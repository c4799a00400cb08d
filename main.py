#!/usr/bin/env python3
"""Finance Tracker CLI - income, expenses, recurring series and savings goals."""
import argparse
import sys
import logging
from pathlib import Path

from finance_tracker.api.finance_service import FinanceService
from finance_tracker.config import GOAL_COLORS, GOAL_STATUSES


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S"
    )


def open_service(args) -> FinanceService:
    return FinanceService(db_path=Path(args.db) if args.db else None)


def print_series(s):
    end = s["end_date"] or "open"
    print(
        f"  ID {s['id']:4d} | {s['status']:6s} | {s['frequency']:9s} | {s['name'][:20]:20s} | "
        f"${s['amount']:10,.2f} {s['type']:7s} | {s['start_date']} -> {end}"
    )


def print_sync(summary):
    print(f"  Created: {summary['created']}  Updated: {summary['updated']}  Deleted: {summary['deleted']}")


def cmd_series(args):
    """List recurring series."""
    with open_service(args) as service:
        series = service.list_series(status=args.status)

        if not series:
            print("No recurring series.")
            return 0

        print(f"{len(series)} recurring series:\n")
        for s in series:
            print_series(s)

    return 0


def cmd_add_series(args):
    """Create a recurring series."""
    with open_service(args) as service:
        try:
            series = service.create_series({
                "name": args.name,
                "amount": args.amount,
                "type": args.type,
                "category_id": args.category,
                "frequency": args.frequency,
                "start_date": args.start,
                "end_date": args.end,
                "anchor_day": args.anchor_day,
                "owner_id": args.owner,
                "owner_type": "individual" if args.owner else "shared",
            })
        except ValueError as e:
            print(f"Error: {e}")
            return 1

        print(f"Created series {series['id']}:")
        print_series(series)
        print_sync(series["sync"])

    return 0


def cmd_pause(args):
    """Pause a recurring series."""
    with open_service(args) as service:
        try:
            series = service.pause_series(args.series_id, args.date)
        except ValueError as e:
            print(f"Error: {e}")
            return 1
        if series is None:
            print(f"Series {args.series_id} not found")
            return 1

        print(f"Series {args.series_id} paused ({series['exceptions_added']} dates skipped)")
        print_sync(series["sync"])

    return 0


def cmd_resume(args):
    """Resume a paused series."""
    with open_service(args) as service:
        try:
            series = service.resume_series(args.series_id, args.date)
        except ValueError as e:
            print(f"Error: {e}")
            return 1
        if series is None:
            print(f"Series {args.series_id} not found")
            return 1

        print(f"Series {args.series_id} resumed ({series['exceptions_cleared']} skips cleared)")
        print_sync(series["sync"])

    return 0


def cmd_delete_series(args):
    """Delete a series with its occurrences."""
    with open_service(args) as service:
        counts = service.delete_series(args.series_id)
        if counts is None:
            print(f"Series {args.series_id} not found")
            return 1

        print(
            f"Deleted series {args.series_id}: {counts['occurrences']} occurrences, "
            f"{counts['exceptions']} exceptions"
        )

    return 0


def cmd_sync(args):
    """Reconcile one series, or all of them."""
    with open_service(args) as service:
        if args.series_id is not None:
            summary = service.sync_series(args.series_id)
            if summary is None:
                print(f"Series {args.series_id} not found")
                return 1
            print(f"Series {args.series_id} synced:")
        else:
            summary = service.sync_all_series()
            print(f"{summary['series']} series synced:")
        print_sync(summary)

    return 0


def cmd_occurrences(args):
    """Show the dates a series produces in a window."""
    with open_service(args) as service:
        try:
            dates = service.get_series_schedule(args.series_id, args.start, args.end)
        except ValueError as e:
            print(f"Error: {e}")
            return 1
        if dates is None:
            print(f"Series {args.series_id} not found")
            return 1

        print(f"{len(dates)} dates between {args.start} and {args.end}:")
        for d in dates:
            print(f"  {d}")

    return 0


def cmd_summary(args):
    """Show income and expense totals."""
    with open_service(args) as service:
        summary = service.get_summary(args.start, args.end)
        stats = service.get_recurring_stats()

        print("=" * 50)
        print("FINANCE SUMMARY")
        print("=" * 50)
        print(f"\nTransactions:       {summary['transaction_count']}")
        print(f"Total income:       ${summary['total_income']:,.2f}")
        print(f"Total expenses:     ${summary['total_expenses']:,.2f}")
        print(f"Net balance:        ${summary['net_balance']:,.2f}")
        print(f"\nRecurring series:   {stats['total']} ({stats['active']} active, {stats['paused']} paused)")
        print(f"Horizon:            {stats['horizon_months']} months")

    return 0


def cmd_export(args):
    """Export transactions to CSV."""
    with open_service(args) as service:
        content = service.export_transactions_csv(args.start, args.end)

    if args.output:
        Path(args.output).write_text(content)
        print(f"Exported to {args.output}")
    else:
        sys.stdout.write(content)

    return 0


def print_goal(g):
    deadline = g["deadline"] or "none"
    print(
        f"  ID {g['id']:4d} | {g['status']:9s} | {g['title'][:20]:20s} | "
        f"${g['saved_amount']:10,.2f} of ${g['target_amount']:10,.2f} ({g['progress']:5.1f}%) | by {deadline}"
    )


def cmd_goals(args):
    """List savings goals."""
    with open_service(args) as service:
        goals = service.list_goals(status=args.status)

        if not goals:
            print("No savings goals.")
            return 0

        print(f"{len(goals)} savings goals:\n")
        for g in goals:
            print_goal(g)

    return 0


def cmd_add_goal(args):
    """Create a savings goal."""
    with open_service(args) as service:
        try:
            goal = service.add_goal({
                "title": args.title,
                "target_amount": args.target,
                "deadline": args.deadline,
                "color": args.color,
                "owner_id": args.owner,
                "owner_type": "individual" if args.owner else "shared",
            })
        except ValueError as e:
            print(f"Error: {e}")
            return 1

        print(f"Created goal {goal['id']}:")
        print_goal(goal)

    return 0


def cmd_fund_goal(args):
    """Add money to a savings goal."""
    with open_service(args) as service:
        try:
            goal = service.add_funds(args.goal_id, args.amount)
        except ValueError as e:
            print(f"Error: {e}")
            return 1
        if goal is None:
            print(f"Goal {args.goal_id} not found")
            return 1

        print_goal(goal)
        if goal["status"] == "completed":
            print("Goal reached!")

    return 0


def cmd_reset(args):
    """Delete all series, transactions and goals."""
    if not args.yes:
        print("Refusing to reset without --yes")
        return 1

    with open_service(args) as service:
        counts = service.reset_all_data()

    print("All data reset:")
    for table, count in counts.items():
        print(f"  {table}: {count}")

    return 0


def cmd_serve(args):
    """Run the web API."""
    import uvicorn

    uvicorn.run("finance_tracker.web.api:app", host=args.host, port=args.port)
    return 0


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Finance Tracker - income, expenses and recurring series",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  finance-tracker add-series Rent 1200 --start 2026-01-31     Monthly rent on the 31st
  finance-tracker add-series Pay 2500 --type income -f bi-weekly --start 2026-01-02
  finance-tracker occurrences 1 2026-01-01 2026-06-30          Preview a series
  finance-tracker pause 1 --date 2026-05-01                    Pause from a date
  finance-tracker sync                                         Extend all series to the horizon
  finance-tracker export -o transactions.csv                   Export to CSV
  finance-tracker add-goal "Emergency fund" 5000 --deadline 2026-12-31
  finance-tracker fund-goal 1 250                              Add savings to a goal
"""
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--db", help="Database file (default: ~/.finance_tracker/finance.db)")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Series command
    series_parser = subparsers.add_parser("series", help="List recurring series")
    series_parser.add_argument("--status", choices=["active", "paused"], help="Filter by status")
    series_parser.set_defaults(func=cmd_series)

    # Add series command
    add_parser = subparsers.add_parser("add-series", help="Create a recurring series")
    add_parser.add_argument("name", help="Series name")
    add_parser.add_argument("amount", type=float, help="Amount per occurrence")
    add_parser.add_argument("--start", required=True, help="Start date (YYYY-MM-DD)")
    add_parser.add_argument("--end", help="End date (YYYY-MM-DD)")
    add_parser.add_argument("-f", "--frequency", default="monthly",
                            choices=["daily", "weekly", "bi-weekly", "monthly"])
    add_parser.add_argument("-t", "--type", default="expense", choices=["income", "expense"])
    add_parser.add_argument("-c", "--category", help="Category ID")
    add_parser.add_argument("--anchor-day", type=int, help="Day of month for monthly series")
    add_parser.add_argument("--owner", help="Owner ID for an individual series")
    add_parser.set_defaults(func=cmd_add_series)

    # Pause command
    pause_parser = subparsers.add_parser("pause", help="Pause a series")
    pause_parser.add_argument("series_id", type=int, help="Series ID")
    pause_parser.add_argument("--date", help="Pause from this date (default: today)")
    pause_parser.set_defaults(func=cmd_pause)

    # Resume command
    resume_parser = subparsers.add_parser("resume", help="Resume a paused series")
    resume_parser.add_argument("series_id", type=int, help="Series ID")
    resume_parser.add_argument("--date", help="Resume from this date (default: today)")
    resume_parser.set_defaults(func=cmd_resume)

    # Delete series command
    delete_parser = subparsers.add_parser("delete-series", help="Delete a series and its occurrences")
    delete_parser.add_argument("series_id", type=int, help="Series ID")
    delete_parser.set_defaults(func=cmd_delete_series)

    # Sync command
    sync_parser = subparsers.add_parser("sync", help="Reconcile series occurrences")
    sync_parser.add_argument("series_id", type=int, nargs="?", help="Series ID (default: all)")
    sync_parser.set_defaults(func=cmd_sync)

    # Occurrences command
    occ_parser = subparsers.add_parser("occurrences", help="Preview series dates in a window")
    occ_parser.add_argument("series_id", type=int, help="Series ID")
    occ_parser.add_argument("start", help="First date (YYYY-MM-DD)")
    occ_parser.add_argument("end", help="Last date (YYYY-MM-DD)")
    occ_parser.set_defaults(func=cmd_occurrences)

    # Summary command
    summary_parser = subparsers.add_parser("summary", help="Show income and expense totals")
    summary_parser.add_argument("--start", help="From date (YYYY-MM-DD)")
    summary_parser.add_argument("--end", help="To date (default: today)")
    summary_parser.set_defaults(func=cmd_summary)

    # Export command
    export_parser = subparsers.add_parser("export", help="Export transactions to CSV")
    export_parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    export_parser.add_argument("--start", help="From date (YYYY-MM-DD)")
    export_parser.add_argument("--end", help="To date (YYYY-MM-DD)")
    export_parser.set_defaults(func=cmd_export)

    # Goals command
    goals_parser = subparsers.add_parser("goals", help="List savings goals")
    goals_parser.add_argument("--status", choices=GOAL_STATUSES, help="Filter by status")
    goals_parser.set_defaults(func=cmd_goals)

    # Add goal command
    goal_parser = subparsers.add_parser("add-goal", help="Create a savings goal")
    goal_parser.add_argument("title", help="Goal title")
    goal_parser.add_argument("target", type=float, help="Target amount")
    goal_parser.add_argument("--deadline", help="Deadline (YYYY-MM-DD)")
    goal_parser.add_argument("--color", default="slate", choices=GOAL_COLORS)
    goal_parser.add_argument("--owner", help="Owner ID for an individual goal")
    goal_parser.set_defaults(func=cmd_add_goal)

    # Fund goal command
    fund_parser = subparsers.add_parser("fund-goal", help="Add money to a savings goal")
    fund_parser.add_argument("goal_id", type=int, help="Goal ID")
    fund_parser.add_argument("amount", type=float, help="Amount to add")
    fund_parser.set_defaults(func=cmd_fund_goal)

    # Reset command
    reset_parser = subparsers.add_parser("reset", help="Delete all series, transactions and goals")
    reset_parser.add_argument("--yes", action="store_true", help="Confirm the reset")
    reset_parser.set_defaults(func=cmd_reset)

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the web API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
