import unittest
from pathlib import Path

from bestball.league import load_league
from bestball.models import Player, RosterSlot, Substitution, WeekScore
from bestball.odds import moneyline_to_probability, remove_vig
from bestball.pipeline import (
    LeagueContext,
    evaluate_league,
    evaluate_owner,
    evaluate_slot,
    rank_owners,
    scores_by_player,
)

FIXTURE = Path(__file__).parent / 'fixtures' / 'league.json'

RB = Player('rb', 'Running Back', 'RB', 'BAL')
SUB = Player('sub', 'Backup Back', 'RB', 'DEN')


class TestEvaluateSlot(unittest.TestCase):
    def setUp(self):
        self.scores = scores_by_player([
            WeekScore('rb', 1, 10.0),
            WeekScore('rb', 2, 20.0),
            WeekScore('sub', 1, 4.0),
            WeekScore('sub', 2, 8.0),
            WeekScore('sub', 3, 6.0),
        ])

    def test_historical_projection_and_ev(self):
        ctx = LeagueContext(week=3, scores=self.scores, win_probs={'BAL': {3: 0.6, 5: 0.5}})
        ev = evaluate_slot(RosterSlot('Ann', 'RB1', RB), ctx)
        expected = (10.0 * 0.8 + 20.0) / 1.8
        self.assertAlmostEqual(ev.projection.points, expected)
        self.assertEqual(ev.projection.source, 'historical')
        self.assertAlmostEqual(ev.expected_value, expected * 0.6)
        self.assertAlmostEqual(ev.remaining_ev, expected * (0.6 + 0.3))
        self.assertAlmostEqual(ev.actual_points, 30.0)
        self.assertFalse(ev.substituted)

    def test_substitute_drives_projection_after_boundary(self):
        slot = RosterSlot('Ann', 'RB1', RB, [Substitution(2, SUB)])
        ctx = LeagueContext(week=3, scores=self.scores, eliminated=frozenset({'BAL'}))
        ev = evaluate_slot(slot, ctx)
        self.assertEqual(ev.active, SUB)
        self.assertEqual(ev.team, 'DEN')
        self.assertTrue(ev.substituted)
        self.assertFalse(ev.eliminated)
        # rb week 1 plus sub weeks 2 and 3
        self.assertAlmostEqual(ev.actual_points, 10.0 + 8.0 + 6.0)
        # only the substitute's weeks before week 3 feed the projection
        self.assertAlmostEqual(ev.projection.points, (4.0 * 0.8 + 8.0) / 1.8)

    def test_future_substitution_switches_team_for_later_rounds(self):
        hurt = Player('hurt', 'Hurt Receiver', 'WR', 'LAR')
        healthy = Player('healthy', 'Healthy Receiver', 'WR', 'HOU')
        ctx = LeagueContext(
            week=2,
            scores=scores_by_player([WeekScore('healthy', 1, 10.0)]),
            eliminated=frozenset({'LAR'}),
            win_probs={'HOU': {2: 0.5, 3: 0.5, 5: 0.5}},
        )
        ev = evaluate_slot(RosterSlot('Ann', 'WR1', hurt, [Substitution(3, healthy)]), ctx)
        # the original still holds the slot this week and is out
        self.assertTrue(ev.eliminated)
        self.assertIsNone(ev.expected_value)
        divisional, conference, super_bowl = ev.bracket.rounds
        self.assertTrue(divisional.eliminated)
        self.assertFalse(conference.eliminated)
        # HOU must win in week 2 to be playing in week 3
        self.assertAlmostEqual(conference.advance_probability, 0.25)
        self.assertAlmostEqual(super_bowl.advance_probability, 0.125)
        self.assertAlmostEqual(ev.remaining_ev, 10.0 * (0.25 + 0.125))
        self.assertGreater(ev.remaining_ev, 0)
        self.assertAlmostEqual(ev.bracket.championship_probability, 0.125)

    def test_eliminated_slot(self):
        ctx = LeagueContext(week=3, scores=self.scores, eliminated=frozenset({'BAL'}))
        ev = evaluate_slot(RosterSlot('Ann', 'RB1', RB), ctx)
        self.assertTrue(ev.eliminated)
        self.assertIsNone(ev.expected_value)
        self.assertEqual(ev.remaining_ev, 0.0)
        self.assertAlmostEqual(ev.actual_points, 30.0)


class TestEvaluateOwner(unittest.TestCase):
    def test_totals_and_ranking(self):
        scores = scores_by_player([WeekScore('rb', 1, 10.0), WeekScore('rb2', 1, 25.0)])
        rb2 = Player('rb2', 'Other Back', 'RB', 'HOU')
        ctx = LeagueContext(week=2, scores=scores, eliminated=frozenset({'HOU'}))
        ann = evaluate_owner('Ann', [RosterSlot('Ann', 'RB1', RB)], ctx)
        ben = evaluate_owner('Ben', [RosterSlot('Ben', 'RB1', rb2)], ctx)
        self.assertEqual((ann.active_players, ann.eliminated_players), (1, 0))
        self.assertEqual((ben.active_players, ben.eliminated_players), (0, 1))
        self.assertEqual(ben.projected_points, 0.0)
        self.assertAlmostEqual(ann.best_ball_points, 10.0)
        self.assertAlmostEqual(ann.total_value, ann.actual_points + ann.remaining_ev)
        # ben has more points banked but no one left playing
        self.assertEqual([s.owner for s in rank_owners([ben, ann])], ['Ben', 'Ann'])

    def test_ties_keep_input_order(self):
        ctx = LeagueContext(week=2)
        a = evaluate_owner('A', [], ctx)
        b = evaluate_owner('B', [], ctx)
        self.assertEqual([s.owner for s in rank_owners([b, a])], ['B', 'A'])


class TestLeagueFixture(unittest.TestCase):
    def setUp(self):
        self.league = load_league(str(FIXTURE))
        self.ctx = self.league.context()
        self.summaries = evaluate_league(self.league.rosters, self.ctx)
        self.by_owner = {s.owner: s for s in self.summaries}

    def test_ranking(self):
        self.assertEqual(self.ctx.week, 2)
        self.assertEqual([s.owner for s in self.summaries], ['Alice', 'Bob'])

    def test_alice(self):
        alice = self.by_owner['Alice']
        self.assertAlmostEqual(alice.actual_points, 24.5 + 14.0 + 21.0 + 6.5)
        slots = {s.slot: s for s in alice.slots}
        allen = slots['QB']
        # props only (one game played), then the snow penalty
        prop_points = 240.5 / 30 + 1.5 * 6 + 35.5 / 10
        self.assertEqual(allen.projection.source, 'prop')
        self.assertAlmostEqual(allen.projection.points, prop_points * 0.85)
        self.assertEqual(allen.projection.weather_impact, 'high')
        # explicit probabilities beat the odds-derived 0.42
        self.assertAlmostEqual(allen.week_ev.win_probability, 0.55)
        self.assertTrue(slots['RB1'].eliminated)
        self.assertEqual(alice.eliminated_players, 1)
        wr = slots['WR1']
        self.assertTrue(wr.substituted)
        self.assertEqual(wr.active.id, 'atwell')
        self.assertAlmostEqual(wr.projection.points, 3.0)

    def test_bob(self):
        bob = self.by_owner['Bob']
        self.assertEqual(bob.actual_points, 0.0)
        kc, _ = remove_vig(moneyline_to_probability(-150), moneyline_to_probability(130))
        expected = 18.5 * (0.7 + 0.35 + 0.175) + 12.0 * (0.7 + 0.35 + 0.175) + 7.5 * kc * 1.75
        self.assertAlmostEqual(bob.remaining_ev, expected)
        self.assertTrue(all(s.projection.confidence == 'low' for s in bob.slots))


if __name__ == '__main__':
    unittest.main()
