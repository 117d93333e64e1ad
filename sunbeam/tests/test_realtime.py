import json
import unittest
from unittest.mock import MagicMock, patch

from redis import exceptions as redis_exceptions

from sunbeam.realtime import InMemoryEventFeed, RedisEventFeed, open_subscription


class InMemoryEventFeedTests(unittest.TestCase):
    def test_delivers_to_subscribers_of_the_channel(self):
        feed = InMemoryEventFeed()
        received, other = [], []
        feed.subscribe("posts-changes", received.append)
        feed.subscribe("letters-changes", other.append)

        feed.publish("posts-changes", {"id": "1"})

        self.assertEqual(received, [{"id": "1"}])
        self.assertEqual(other, [])

    def test_close_stops_delivery_and_is_idempotent(self):
        feed = InMemoryEventFeed()
        received = []
        subscription = feed.subscribe("posts-changes", received.append)
        subscription.close()
        subscription.close()

        feed.publish("posts-changes", {"id": "1"})

        self.assertEqual(received, [])
        self.assertTrue(subscription.closed)
        self.assertEqual(feed.listener_count("posts-changes"), 0)

    def test_open_subscription_releases_on_error(self):
        feed = InMemoryEventFeed()
        with self.assertRaises(RuntimeError):
            with open_subscription(feed, "posts-changes", lambda payload: None):
                self.assertEqual(feed.listener_count("posts-changes"), 1)
                raise RuntimeError("view torn down")
        self.assertEqual(feed.listener_count("posts-changes"), 0)

    def test_failing_listener_does_not_block_others(self):
        feed = InMemoryEventFeed()
        received = []

        def broken(payload):
            raise ValueError("boom")

        feed.subscribe("posts-changes", broken)
        feed.subscribe("posts-changes", received.append)
        with self.assertLogs("sunbeam.realtime", level="ERROR"):
            feed.publish("posts-changes", {"id": "2"})
        self.assertEqual(received, [{"id": "2"}])


class RedisEventFeedTests(unittest.TestCase):
    def setUp(self):
        patcher = patch("sunbeam.realtime.redis.Redis.from_url")
        self.from_url = patcher.start()
        self.addCleanup(patcher.stop)
        self.client = MagicMock()
        self.from_url.return_value = self.client

    def test_publish_serializes_payload(self):
        feed = RedisEventFeed(url="redis://localhost:6379/0")
        feed.publish("posts-changes", {"id": "1", "content": "hi"})
        channel, message = self.client.publish.call_args[0]
        self.assertEqual(channel, "posts-changes")
        self.assertEqual(json.loads(message), {"id": "1", "content": "hi"})

    def test_publish_reconnects_after_connection_error(self):
        self.client.publish.side_effect = redis_exceptions.ConnectionError("reset")
        feed = RedisEventFeed(url="redis://localhost:6379/0")
        with self.assertLogs("sunbeam.realtime", level="WARNING"):
            feed.publish("posts-changes", {"id": "1"})
        self.assertEqual(self.from_url.call_count, 2)

    def test_publish_failure_is_logged_not_raised(self):
        self.client.publish.side_effect = redis_exceptions.ResponseError("READONLY")
        feed = RedisEventFeed(url="redis://localhost:6379/0")
        with self.assertLogs("sunbeam.realtime", level="ERROR"):
            feed.publish("posts-changes", {"id": "1"})
        self.assertEqual(self.from_url.call_count, 1)

    def test_subscribe_decodes_messages_and_releases(self):
        pubsub = self.client.pubsub.return_value
        worker = pubsub.run_in_thread.return_value
        feed = RedisEventFeed(url="redis://localhost:6379/0")
        received = []

        subscription = feed.subscribe("posts-changes", received.append)
        handler = pubsub.subscribe.call_args.kwargs["posts-changes"]
        handler({"type": "message", "data": b'{"id": "7"}'})
        with self.assertLogs("sunbeam.realtime", level="WARNING"):
            handler({"type": "message", "data": b"not json"})
        subscription.close()

        self.assertEqual(received, [{"id": "7"}])
        worker.stop.assert_called_once()
        pubsub.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
