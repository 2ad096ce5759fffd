import unittest
from bestball.name_matcher import find_best_match, last_name, match_entity, name_appears_in_text, normalize_name


class TestNameMatcher(unittest.TestCase):
    def test_normalize(self):
        self.assertEqual(normalize_name("  Ja'Marr   Chase "), 'jamarr chase')
        self.assertEqual(normalize_name('A.J. Brown'), 'aj brown')
        self.assertEqual(normalize_name(None), '')

    def test_last_name_skips_suffix(self):
        self.assertEqual(last_name('Michael Pittman Jr.'), 'pittman')
        self.assertEqual(last_name('Kenneth Walker III'), 'walker')
        self.assertEqual(last_name('Travis Kelce'), 'kelce')

    def test_exact_match(self):
        candidates = ['Josh Allen', 'Aaron Rodgers']
        self.assertEqual(find_best_match('Josh Allen', candidates), 'Josh Allen')
        self.assertEqual(find_best_match('JOSH  ALLEN', candidates), 'Josh Allen')

    def test_initial_match(self):
        candidates = ['Josh Allen', 'Aaron Rodgers']
        self.assertEqual(find_best_match('J Allen', candidates), 'Josh Allen')

    def test_spelled_out_first_names_must_agree(self):
        candidates = ['Josh Allen']
        self.assertIsNone(find_best_match('Jonathan Allen', candidates))

    def test_overrides(self):
        candidates = ['J.Allen', 'A.Rodgers']
        overrides = {normalize_name('josh allen'): 'J.Allen'}
        self.assertEqual(find_best_match('Josh Allen', candidates, overrides=overrides), 'J.Allen')

    def test_no_match(self):
        self.assertIsNone(find_best_match('Saquon Barkley', ['Josh Allen', 'Aaron Rodgers']))
        self.assertIsNone(find_best_match('', ['Josh Allen']))

    def test_name_appears_in_text(self):
        self.assertTrue(name_appears_in_text('Harrison Butker', 'H.Butker 48 yd FG GOOD'))
        self.assertFalse(name_appears_in_text('Harrison Butker', 'Tucker 48 yd FG'))
        # two-letter last names never match free text
        self.assertFalse(name_appears_in_text('Ed Ng', 'Long pass to Ngata'))

    def test_match_entity_returns_id(self):
        known = {'p1': 'Josh Allen', 'p2': 'Aaron Rodgers'}
        self.assertEqual(match_entity('josh allen', known), 'p1')
        self.assertEqual(match_entity('A. Rodgers', known), 'p2')
        self.assertIsNone(match_entity('Lamar Jackson', known))

    def test_match_entity_is_order_independent(self):
        a = {'p1': 'Josh Allen', 'p2': 'Josh Allen'}
        b = {'p2': 'Josh Allen', 'p1': 'Josh Allen'}
        self.assertEqual(match_entity('Josh Allen', a), match_entity('Josh Allen', b))


if __name__ == '__main__':
    unittest.main()
