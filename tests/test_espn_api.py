import unittest

import responses
from responses import matchers

from bestball.espn_api import BASE, ESPNAPIError, ESPNClient


class TestESPNClient(unittest.TestCase):
    @responses.activate
    def test_get_summary(self):
        responses.add(responses.GET, BASE + '/summary', json={'boxscore': {'players': []}}, status=200,
                      match=[matchers.query_param_matcher({'event': '401547'})])
        client = ESPNClient()
        res = client.get_summary('401547')
        self.assertIn('boxscore', res)

    @responses.activate
    def test_get_events_uses_postseason(self):
        responses.add(responses.GET, BASE + '/scoreboard', json={'events': [{'id': '1'}, {'id': '2'}]}, status=200,
                      match=[matchers.query_param_matcher({'seasontype': '3', 'week': '2'})])
        events = ESPNClient().get_events(2)
        self.assertEqual([e['id'] for e in events], ['1', '2'])

    @responses.activate
    def test_missing_events_key(self):
        responses.add(responses.GET, BASE + '/scoreboard', json={}, status=200)
        self.assertEqual(ESPNClient().get_events(1), [])

    @responses.activate
    def test_get_summary_404(self):
        responses.add(responses.GET, BASE + '/summary', json={'error': 'not found'}, status=404)
        client = ESPNClient()
        with self.assertRaises(ESPNAPIError):
            client.get_summary('nope')


if __name__ == '__main__':
    unittest.main()
