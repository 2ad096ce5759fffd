import unittest

from bestball.models import Player, PointsBreakdown, RosterSlot, WeekScore
from bestball.pipeline import LeagueContext, evaluate_owner, scores_by_player
from bestball.report import OWNER_COLUMNS, SLOT_COLUMNS, game_frame, owners_frame, slots_frame


class TestReport(unittest.TestCase):
    def setUp(self):
        qb = Player('qb', 'Some Passer', 'QB', 'KC')
        out = Player('out', 'Gone Receiver', 'WR', 'PIT')
        ctx = LeagueContext(
            week=1,
            scores=scores_by_player([WeekScore('out', 1, 12.3456)]),
            eliminated=frozenset({'PIT'}),
            bye_teams=frozenset({'KC'}),
        )
        self.low = evaluate_owner('Low', [RosterSlot('Low', 'WR1', out)], ctx)
        self.high = evaluate_owner('High', [RosterSlot('High', 'QB', qb)], ctx)

    def test_slots_frame(self):
        df = slots_frame([self.low, self.high])
        self.assertEqual(list(df.columns), SLOT_COLUMNS)
        self.assertEqual(list(df['status']), ['eliminated', 'bye'])
        self.assertEqual(df.loc[0, 'actual'], 12.35)

    def test_owners_frame_ranks_by_total(self):
        df = owners_frame([self.low, self.high])
        self.assertEqual(list(df.columns), OWNER_COLUMNS)
        self.assertEqual(list(df['owner']), ['High', 'Low'])
        self.assertEqual(list(df['rank']), [1, 2])

    def test_empty_frames(self):
        self.assertEqual(list(owners_frame([]).columns), OWNER_COLUMNS)
        self.assertTrue(game_frame([]).empty)

    def test_game_frame_sorted(self):
        df = game_frame([('A', 'KC', PointsBreakdown(passing=4.0)), ('B', 'KC', PointsBreakdown(rushing=9.456))])
        self.assertEqual(list(df['player']), ['B', 'A'])
        self.assertEqual(df.loc[0, 'total'], 9.46)


if __name__ == '__main__':
    unittest.main()
