import unittest

from bestball.best_ball import LineupCandidate, best_ball_lineup, season_best_ball_points
from bestball.models import Player, WeekScore


def cand(pid, position, **weeks):
    points = {int(k[1:]): v for k, v in weeks.items()}
    return LineupCandidate(Player(pid, pid.title(), position), points)


class TestBestBall(unittest.TestCase):
    def setUp(self):
        self.roster = [
            cand('qb1', 'QB', w1=20.0, w2=12.0),
            cand('qb2', 'QB', w1=15.0, w2=25.0),
            cand('rb1', 'RB', w1=10.0),
            cand('rb2', 'RB', w1=8.0),
            cand('rb3', 'RB', w1=14.0),
            cand('wr1', 'WR', w1=5.0),
            cand('wr2', 'WR', w1=12.0),
            cand('wr3', 'WR', w1=7.0),
            cand('te1', 'TE', w1=6.0),
            cand('k1', 'K', w1=9.0),
            cand('dst1', 'DST', w1=4.0),
        ]

    def test_best_players_fill_fixed_slots(self):
        lineup = best_ball_lineup(self.roster, 1)
        picks = {slot: c.player.id for slot, c in lineup.starters.items()}
        self.assertEqual(picks['QB'], 'qb1')
        self.assertEqual({picks['RB1'], picks['RB2']}, {'rb3', 'rb1'})
        self.assertEqual({picks['WR1'], picks['WR2']}, {'wr2', 'wr3'})
        # FLEX takes the best leftover RB/WR/TE
        self.assertEqual(picks['FLEX'], 'rb2')
        self.assertEqual([c.player.id for c in lineup.bench], ['qb2', 'wr1'])
        self.assertAlmostEqual(lineup.total_points, 20 + 14 + 10 + 12 + 7 + 6 + 9 + 4 + 8)

    def test_lineup_changes_week_to_week(self):
        self.assertEqual(best_ball_lineup(self.roster, 2).starters['QB'].player.id, 'qb2')

    def test_quarterback_never_flexes(self):
        lineup = best_ball_lineup([cand('qb1', 'QB', w1=30.0), cand('qb2', 'QB', w1=28.0)], 1)
        self.assertNotIn('FLEX', lineup.starters)
        self.assertEqual([c.player.id for c in lineup.bench], ['qb2'])

    def test_season_points(self):
        totals = season_best_ball_points(self.roster)
        self.assertEqual(sorted(totals), [1, 2, 3, 5])
        self.assertAlmostEqual(totals[2], 25.0)
        self.assertEqual(totals[5], 0.0)

    def test_from_scores_sums_weeks(self):
        c = LineupCandidate.from_scores(Player('x', 'X', 'WR'), [WeekScore('x', 1, 4.0), WeekScore('x', 1, 2.5)])
        self.assertEqual(c.week_points(1), 6.5)
        self.assertEqual(c.week_points(2), 0.0)


if __name__ == '__main__':
    unittest.main()
