import json
import unittest
from datetime import datetime, timezone
from pathlib import Path

from bestball.box_score import parse_box_score
from bestball.league import league_from_dict, load_league, match_box_score, parse_timestamp
from bestball.models import BlendConfigError, Player, RosterSlot, ScoringConfigError
from bestball.pipeline import evaluate_slot
from bestball.scoring import ScoringEngine

FIXTURE = Path(__file__).parent / 'fixtures' / 'league.json'
SUMMARY = Path(__file__).parent / 'fixtures' / 'summary.json'


class TestLoadLeague(unittest.TestCase):
    def setUp(self):
        self.league = load_league(str(FIXTURE))

    def test_players_and_rosters(self):
        self.assertEqual(len(self.league.players), 7)
        self.assertEqual(sorted(self.league.rosters), ['Alice', 'Bob'])
        wr = self.league.rosters['Alice'][2]
        self.assertEqual(wr.slot, 'WR1')
        self.assertEqual(wr.substitutions[0].substitute.id, 'atwell')
        self.assertEqual(wr.substitutions[0].effective_week, 2)
        self.assertEqual(wr.substitutions[0].reason, 'Injured reserve')

    def test_scores_and_props(self):
        self.assertEqual([s.points for s in self.league.scores['atwell']], [3.0, 6.5])
        props = self.league.props['allen']
        self.assertEqual(len(props), 3)
        self.assertEqual(props[0].updated_at, datetime(2026, 1, 17, 12, 0, tzinfo=timezone.utc))

    def test_bracket_state(self):
        self.assertEqual(self.league.eliminated, {'HOU', 'PIT'})
        self.assertEqual(self.league.bye_teams, {'DET', 'KC'})
        self.assertEqual(self.league.win_probs['BUF'][2], 0.55)
        self.assertAlmostEqual(self.league.win_probs['KC'][2], 0.6 / (0.6 + 100 / 230))
        self.assertEqual(self.league.weather['BUF'].condition, 'Snow')

    def test_context(self):
        ctx = self.league.context()
        self.assertEqual(ctx.week, 2)
        self.assertEqual(ctx.now, datetime(2026, 1, 17, 18, 0, tzinfo=timezone.utc))
        self.assertEqual(self.league.context(week=3).week, 3)


class TestLeagueFromDict(unittest.TestCase):
    def test_empty_document(self):
        league = league_from_dict({})
        self.assertEqual(league.rosters, {})
        self.assertEqual(league.bye_teams, set())
        # week inferred from the elimination count
        self.assertEqual(league.context().week, 1)

    def test_week_inferred_when_missing(self):
        league = league_from_dict({'eliminated': ['a', 'b', 'c', 'd', 'e', 'f']})
        self.assertEqual(league.context().week, 2)

    def test_unknown_player_skipped(self):
        doc = {'owners': [{'name': 'Cy', 'roster': [{'slot': 'QB', 'player': 'ghost'}]}]}
        with self.assertLogs('bestball.league', level='WARNING'):
            league = league_from_dict(doc)
        self.assertEqual(league.rosters['Cy'], [])

    def test_inline_scoring_and_blend(self):
        league = league_from_dict({'scoring': {'pass_td': 4}, 'blend': {'decay': 0.5}})
        self.assertEqual(league.rules.pass_td, 4)
        self.assertEqual(league.config.decay, 0.5)
        with self.assertRaises(ScoringConfigError):
            league_from_dict({'scoring': {'no_such_rule': 1}})
        with self.assertRaises(BlendConfigError):
            league_from_dict({'blend': {'no_such_setting': 1}})

    def test_estimate_props_setting(self):
        self.assertFalse(league_from_dict({}).context().estimate_props)
        league = league_from_dict({'estimate_props': True})
        self.assertTrue(league.context().estimate_props)
        self.assertFalse(league.context(estimate_props=False).estimate_props)

    def test_estimated_props_reach_the_projection(self):
        doc = {
            'week': 2,
            'players': [{'id': 'rb', 'name': 'Some Back', 'position': 'RB', 'team': 'KC', 'props': [
                {'type': 'RUSH_YARDS', 'line': 70}, {'type': 'REC_YARDS', 'line': 20}]}],
        }
        player = league_from_dict(doc).players['rb']
        plain = evaluate_slot(RosterSlot('Cy', 'RB1', player), league_from_dict(doc).context())
        self.assertAlmostEqual(plain.projection.points, 7.0 + 2.0)
        doc['estimate_props'] = True
        estimated = evaluate_slot(RosterSlot('Cy', 'RB1', player), league_from_dict(doc).context())
        # two estimated catches plus a 0.9 rushing-TD chance
        self.assertAlmostEqual(estimated.projection.points, 7.0 + 2.0 + 1.0 + 0.9 * 6)
        self.assertEqual(estimated.projection.prop_count, 2)


class TestMatchBoxScore(unittest.TestCase):
    def setUp(self):
        self.box = parse_box_score(json.loads(SUMMARY.read_text()))
        self.players = {
            'pm': Player('pm', 'Patrick Mahomes', 'QB', 'KC'),
            'kelce': Player('kelce', 'Travis Kelce', 'TE', 'KC'),
            'allen': Player('allen', 'Josh Allen', 'QB', 'BUF'),
            'kc_dst': Player('kc_dst', 'KC DST', 'DST', 'KC'),
            'hou_dst': Player('hou_dst', 'Houston Texans', 'DST', 'HOU'),
        }

    def test_lines_credited_to_league_ids(self):
        match = match_box_score(self.box, self.players, 2, ScoringEngine())
        points = {s.player_id: s.points for s in match.week_scores}
        self.assertEqual(sorted(points), ['hou_dst', 'kc_dst', 'kelce', 'pm'])
        self.assertAlmostEqual(points['pm'], 18.2)
        self.assertAlmostEqual(points['kelce'], 19.9)
        self.assertAlmostEqual(points['kc_dst'], 14.0)
        self.assertAlmostEqual(points['hou_dst'], 3.0)
        self.assertTrue(all(s.week == 2 for s in match.week_scores))
        self.assertEqual(match.matched, 4)
        self.assertEqual(len(match.unmatched), 5)
        self.assertIn('Isiah Pacheco', match.unmatched)

    def test_defense_falls_back_to_team(self):
        players = {'chiefs': Player('chiefs', 'Chiefs Defense', 'DST', 'KC')}
        match = match_box_score(self.box, players, 3, ScoringEngine())
        self.assertEqual([(s.player_id, s.points) for s in match.week_scores], [('chiefs', 14.0)])
        self.assertIn('HOU DST', match.unmatched)

    def test_no_league_players(self):
        match = match_box_score(self.box, {}, 1, ScoringEngine())
        self.assertEqual(match.matched, 0)
        self.assertEqual(len(match.unmatched), 9)

class TestTimestamps(unittest.TestCase):
    def test_parse(self):
        utc = datetime(2026, 1, 17, 12, 0, tzinfo=timezone.utc)
        self.assertEqual(parse_timestamp('2026-01-17T12:00:00Z'), utc)
        self.assertEqual(parse_timestamp('2026-01-17T12:00:00'), utc)
        self.assertIsNone(parse_timestamp(None))


if __name__ == '__main__':
    unittest.main()
