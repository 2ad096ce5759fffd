import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .box_score import parse_box_score, unique_defenses
from .bracket import PLAYOFF_WEEKS, current_playoff_week, eliminated_teams
from .espn_api import ESPNAPIError, ESPNClient
from .league import load_league, match_box_score
from .models import BestBallError
from .pipeline import evaluate_league
from .report import game_frame, owners_frame, slots_frame
from .rules import DEFAULT_SCORING_RULES, load_scoring, round_points
from .scoring import ScoringEngine


def _frame_records(df):
    # NaN -> null
    return json.loads(df.to_json(orient='records'))


def score_game(summary_path: Optional[str] = None, event_id: Optional[str] = None, scoring_path: Optional[str] = None, explain: bool = False,
               league_path: Optional[str] = None, week: Optional[int] = None) -> int:
    league = load_league(league_path) if league_path else None
    if scoring_path:
        rules = load_scoring(scoring_path)
    else:
        rules = league.rules if league is not None else DEFAULT_SCORING_RULES
    if summary_path:
        summary = json.loads(Path(summary_path).read_text(encoding='utf-8'))
    else:
        print(f"Fetching game summary for event {event_id}...")
        try:
            summary = ESPNClient().get_summary(event_id)
        except ESPNAPIError as e:
            print(f"Error fetching summary: {e}")
            return 1

    box = parse_box_score(summary)
    engine = ScoringEngine(rules)
    defenses = unique_defenses(box.defenses)
    player_points = engine.score_lines(box.players)
    defense_points = engine.score_lines(defenses)

    rows = [(line.name, line.team, player_points[key]) for key, line in box.players.items()]
    rows += [(f"{line.team_name} D/ST", line.abbreviation, defense_points[key]) for key, line in defenses.items()]
    df = game_frame(rows)

    print('SUMMARY_TABLE_START')
    print(df.to_string(index=False) if not df.empty else '(no stats)')

    report: Dict[str, Any] = {'players': {}, 'defenses': {}}
    for key, line in box.players.items():
        entry = {k: round_points(v) for k, v in player_points[key].as_dict().items()}
        entry.update({'name': line.name, 'team': line.team})
        report['players'][key] = entry
    for key, line in defenses.items():
        entry = {k: round_points(v) for k, v in defense_points[key].as_dict().items()}
        entry.update({'name': line.team_name, 'points_allowed': line.points_allowed})
        report['defenses'][key] = entry
    if league is not None:
        week = week if week is not None else current_playoff_week(len(league.eliminated), override=league.week)
        match = match_box_score(box, league.players, week, engine)
        report['week'] = week
        report['matched'] = match.matched
        report['unmatched'] = len(match.unmatched)
        report['unmatched_names'] = match.unmatched
        report['week_scores'] = [
            {'player_id': s.player_id, 'week': s.week, 'points': round_points(s.points)} for s in match.week_scores
        ]
    print('REPORT_JSON_START')
    print(json.dumps(report, indent=2))

    if explain:
        print('EXPLAIN_START')
        labelled = [(line.name, line) for line in box.players.values()]
        labelled += [(f"{line.team_name} D/ST", line) for line in defenses.values()]
        for label, line in labelled:
            breakdown = engine.score_breakdown(line)
            total = sum(breakdown.values())
            print(f"{label}: {total:.2f} -> " + ', '.join(f"{k}={v:.2f}" for k, v in sorted(breakdown.items())))
        print('EXPLAIN_END')
    return 0


def project_league(league_path: str, scoring_path: Optional[str] = None, week: Optional[int] = None, csv_path: Optional[str] = None,
                   estimate_props: bool = False) -> int:
    league = load_league(league_path)
    rules = load_scoring(scoring_path) if scoring_path else None
    # the flag only switches estimation on
    ctx = league.context(week=week, rules=rules, estimate_props=True if estimate_props else None)
    print(f"Projecting {len(league.rosters)} rosters for playoff week {ctx.week} ({len(ctx.eliminated)} teams eliminated)")
    summaries = evaluate_league(league.rosters, ctx)

    owners = owners_frame(summaries)
    slots = slots_frame(summaries)
    print('SUMMARY_TABLE_START')
    print(owners.to_string(index=False) if not owners.empty else '(no rosters)')
    print('REPORT_JSON_START')
    print(json.dumps({'week': ctx.week, 'owners': _frame_records(owners), 'slots': _frame_records(slots)}, indent=2))
    if csv_path:
        slots.to_csv(csv_path, index=False)
        print(f"Wrote {len(slots)} rows to {csv_path}")
    return 0


def show_eliminated(weeks=PLAYOFF_WEEKS) -> int:
    client = ESPNClient()
    events = []
    try:
        for week in weeks:
            events.extend(client.get_events(week))
    except ESPNAPIError as e:
        print(f"Error fetching scoreboard: {e}")
        return 1
    out = sorted(eliminated_teams(events))
    print('REPORT_JSON_START')
    print(json.dumps({'eliminated': out, 'current_week': current_playoff_week(len(out))}, indent=2))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog='bestball')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    sub = parser.add_subparsers(dest='cmd')

    game = sub.add_parser('score-game', help='Score every player and defense in one game')
    src = game.add_mutually_exclusive_group(required=True)
    src.add_argument('--summary', dest='summary_path', help='Path to a saved ESPN game summary JSON')
    src.add_argument('--event-id', help='ESPN event id to fetch')
    game.add_argument('--scoring', dest='scoring_path', help='Path to custom scoring JSON')
    game.add_argument('--explain', action='store_true', help='Print per-stat contribution breakdown after report')
    game.add_argument('--league', dest='league_path', help='League snapshot JSON; credit each line to its league player id')
    game.add_argument('--week', type=int, default=None, help='Playoff week the game belongs to (with --league)')

    proj = sub.add_parser('project', help='Actual points, projections and EV for every roster')
    proj.add_argument('--league', dest='league_path', required=True, help='Path to league snapshot JSON')
    proj.add_argument('--scoring', dest='scoring_path', help='Path to custom scoring JSON (overrides league scoring)')
    proj.add_argument('--week', type=int, default=None, help='Playoff week to evaluate (1, 2, 3 or 5)')
    proj.add_argument('--csv', dest='csv_path', help='Write the per-slot table to this CSV file')
    proj.add_argument('--estimate-props', action='store_true', help='Estimate receptions and TD chances from yardage props when the book has none')

    elim = sub.add_parser('eliminated', help='List teams knocked out of the playoffs')
    elim.add_argument('--weeks', type=int, nargs='+', default=list(PLAYOFF_WEEKS), help='Playoff weeks to scan')

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )
    try:
        if args.cmd == 'score-game':
            if args.week is not None and args.week not in PLAYOFF_WEEKS:
                parser.error(f"--week must be one of {', '.join(str(w) for w in PLAYOFF_WEEKS)}")
            return score_game(args.summary_path, args.event_id, args.scoring_path, explain=args.explain,
                              league_path=args.league_path, week=args.week)
        if args.cmd == 'project':
            if args.week is not None and args.week not in PLAYOFF_WEEKS:
                parser.error(f"--week must be one of {', '.join(str(w) for w in PLAYOFF_WEEKS)}")
            return project_league(args.league_path, args.scoring_path, week=args.week, csv_path=args.csv_path,
                                  estimate_props=args.estimate_props)
        if args.cmd == 'eliminated':
            return show_eliminated(args.weeks)
    except BestBallError as e:
        print(f"Error: {e}")
        return 1
    parser.print_help()
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
