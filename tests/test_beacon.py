"""
Unit tests for beacon formatters and the beacon reporter.
"""

from episodes.engine.mirror import MirrorListener
from episodes.output.formatters import (
    default_formatter,
    encode_uri_component,
    make_boomerang_formatter,
)
from episodes.output.reporter import BeaconReporter, http_get_sender


class TestDefaultFormatter:
    """Classic name:duration beacon."""

    def test_format(self):
        url = default_formatter(
            '/beacon.gif',
            {'firstbyte': 500},
            {'backend': 100, 'frontend': 500},
            {'backend': 400, 'frontend': 480},
        )
        assert url == '/beacon.gif?ets=backend:400,frontend:480&v=0.2'

    def test_names_are_uri_encoded(self):
        url = default_formatter('http://c/b', {}, {'my ep': 0}, {'my ep': 5})
        assert url == 'http://c/b?ets=my%20ep:5&v=0.2'

    def test_no_episodes(self):
        assert default_formatter('/b', {}, {}, {}) == '/b?ets=&v=0.2'

    def test_encode_uri_component(self):
        assert encode_uri_component("a b/c?d") == "a%20b%2Fc%3Fd"
        assert encode_uri_component("m1..end") == "m1..end"
        assert encode_uri_component("it's(ok)!") == "it's(ok)!"


class TestBoomerangFormatter:
    """Boomerang navigation timing beacon."""

    def test_remaps_known_marks(self):
        formatter = make_boomerang_formatter('http://example.com/page')
        url = formatter(
            'collector.local/beacon',
            {'_navigationStart': 1000, '_domComplete': 1300, 'm1': 1100},
            {},
            {},
        )
        assert url == (
            'http://collector.local/beacon?v=1&u=http://example.com/page'
            '&nt_nav_st=1000&nt_domcomp=1300'
        )

    def test_missing_marks_skipped(self):
        formatter = make_boomerang_formatter('p')
        assert formatter('c', {}, {}, {}) == 'http://c?v=1&u=p'

    def test_navigation_counts(self):
        formatter = make_boomerang_formatter('p', scheme='https', redirect_count=2,
                                             navigation_type=0)
        url = formatter('c', {'_fetchStart': 7}, {}, {})
        assert url == 'https://c?v=1&u=p&nt_red_cnt=2&nt_nav_type=0&nt_fet_st=7'


class TestBeaconReporter:
    """One beacon per done."""

    def test_sends_on_each_done(self):
        sent = []
        reporter = BeaconReporter('/beacon.gif', sender=sent.append)
        reporter.listener.handle_line('EPISODES:measure:backend:100:500')
        reporter.listener.handle_line('EPISODES:done')
        reporter.listener.handle_line('EPISODES:measure:frontend:500:980')
        reporter.listener.handle_line('EPISODES:done')

        assert sent == [
            '/beacon.gif?ets=backend:400&v=0.2',
            '/beacon.gif?ets=backend:400,frontend:480&v=0.2',
        ]
        assert reporter.sent_urls == sent

    def test_done_callback(self):
        urls = []
        reporter = BeaconReporter('/b', sender=lambda url: None, done_callback=urls.append)
        reporter.listener.handle_line('EPISODES:done')
        assert urls == ['/b?ets=&v=0.2']

    def test_attaches_to_existing_listener(self):
        mirror = MirrorListener()
        reporter = BeaconReporter('/b', sender=lambda url: None, listener=mirror)
        assert reporter.listener is mirror
        assert mirror.on_done == reporter.send_beacon

    def test_custom_formatter(self):
        sent = []
        reporter = BeaconReporter(
            'c',
            formatter=make_boomerang_formatter('p'),
            sender=sent.append,
        )
        reporter.listener.handle_line('EPISODES:mark:_navigationStart:1000')
        reporter.listener.handle_line('EPISODES:done')
        assert sent == ['http://c?v=1&u=p&nt_nav_st=1000']

    def test_http_sender_failure_returns_false(self):
        # Port 9 (discard) on localhost is not expected to serve HTTP
        assert http_get_sender('http://127.0.0.1:9/beacon', timeout=0.5) is False
