"""Tests for MailboxSession: connect, dedup, stable ids, read."""

import asyncio
import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from tempinbox.errors import InvalidState, TransportFailure, UnknownIdentifier
from tempinbox.gateway import MessageBody, MockMailGateway
from tempinbox.session import MailboxSession, SessionState, create, login

ALICE = "alice@example.com"


def _msg(remote_id, subject="Hello", sender="bob@sender.test", text="hi", html="<p>hi</p>"):
    return {
        "id": remote_id,
        "from": sender,
        "subject": subject,
        "date": "2024-05-01 10:00:00",
        "textBody": text,
        "htmlBody": html,
    }


def _calls(gateway, name):
    return [c for c in gateway.calls if c[0] == name]


class TestMailboxSession(unittest.TestCase):
    """End-to-end and invariant tests against the in-memory gateway."""

    def test_create_ready_fetch_read(self):
        """create → ready(address) → fetch one message without body → read fills body."""
        gateway = MockMailGateway(random_address=ALICE)
        gateway.deliver(ALICE, _msg(101))

        async def run():
            session = await create(gateway)
            ready = []
            session.on("ready", ready.append)
            self.assertEqual(ready, [])
            await asyncio.sleep(0)
            self.assertEqual(ready, [ALICE])
            self.assertEqual(session.state, SessionState.READY)

            messages = await session.fetch()
            self.assertEqual(len(messages), 1)
            msg = messages[0]
            self.assertEqual(msg.remote_id, 101)
            self.assertEqual(msg.from_, "bob@sender.test")
            self.assertEqual(msg.subject, "Hello")
            self.assertEqual(msg.date, "2024-05-01 10:00:00")
            self.assertIsNone(msg.body)

            read = await session.read(msg.local_id)
            self.assertIs(read, msg)
            self.assertEqual(read.body, MessageBody(text="hi", html="<p>hi</p>"))
            self.assertEqual(_calls(gateway, "read_message"), [("read_message", (ALICE, 101))])

        asyncio.run(run())

    def test_login_makes_no_remote_call(self):
        gateway = MockMailGateway()

        async def run():
            session = await login(gateway, ALICE)
            self.assertEqual(session.address, ALICE)
            self.assertEqual(gateway.calls, [])
            ready = []
            session.on("ready", ready.append)
            await asyncio.sleep(0)
            self.assertEqual(ready, [ALICE])

        asyncio.run(run())

    def test_ready_handler_added_late_still_runs_once(self):
        gateway = MockMailGateway()

        async def run():
            session = await login(gateway, ALICE)
            await asyncio.sleep(0)
            late = []
            session.on("ready", late.append)
            self.assertEqual(late, [])
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            self.assertEqual(late, [ALICE])

        asyncio.run(run())

    def test_late_ready_handler_outside_loop_is_invalid(self):
        """Registering after ready, with no running loop, fails clearly."""

        async def run():
            session = await login(MockMailGateway(), ALICE)
            await asyncio.sleep(0)
            return session

        session = asyncio.run(run())
        with self.assertRaises(InvalidState):
            session.on("ready", print)

    def test_async_ready_handler(self):
        gateway = MockMailGateway()
        seen = []

        async def handler(address):
            seen.append(address)

        async def run():
            session = await login(gateway, ALICE)
            session.on("ready", handler)
            for _ in range(3):
                await asyncio.sleep(0)
            self.assertEqual(seen, [ALICE])

        asyncio.run(run())

    def test_unsupported_event(self):
        async def run():
            session = await login(MockMailGateway(), ALICE)
            with self.assertRaises(ValueError):
                session.on("message", print)

        asyncio.run(run())

    def test_connect_twice_is_invalid(self):
        async def run():
            session = await login(MockMailGateway(), ALICE)
            with self.assertRaises(InvalidState):
                await session.connect()
            with self.assertRaises(InvalidState):
                await session.connect("other@example.com")
            self.assertEqual(session.address, ALICE)

        asyncio.run(run())

    def test_failed_create_stays_connecting(self):
        gateway = MockMailGateway()
        gateway.fail_next()

        async def run():
            session = MailboxSession(gateway)
            with self.assertRaises(TransportFailure):
                await session.connect()
            self.assertEqual(session.state, SessionState.CONNECTING)
            self.assertIsNone(session.address)
            with self.assertRaises(InvalidState):
                await session.fetch()
            with self.assertRaises(InvalidState):
                await session.connect()

        asyncio.run(run())

    def test_operations_before_connect_are_invalid(self):
        gateway = MockMailGateway()

        async def run():
            session = MailboxSession(gateway)
            self.assertEqual(session.state, SessionState.UNCONNECTED)
            with self.assertRaises(InvalidState):
                await session.fetch()
            with self.assertRaises(InvalidState):
                await session.read("abc")
            with self.assertRaises(InvalidState):
                session.start_listener(10, lambda batch: None)
            self.assertEqual(gateway.calls, [])

        asyncio.run(run())

    def test_fetch_twice_is_idempotent(self):
        gateway = MockMailGateway()
        gateway.deliver(ALICE, _msg(1))
        gateway.deliver(ALICE, _msg(2))

        async def run():
            session = await login(gateway, ALICE)
            first = [m.local_id for m in await session.fetch()]
            index_before = dict(session.remote_index)
            second = [m.local_id for m in await session.fetch()]
            self.assertEqual(first, second)
            self.assertEqual(dict(session.remote_index), index_before)
            self.assertEqual(len(session), 2)

        asyncio.run(run())

    def test_mapping_is_stable_across_fetches(self):
        gateway = MockMailGateway()
        gateway.deliver(ALICE, _msg("a"))

        async def run():
            session = await login(gateway, ALICE)
            (first,) = await session.fetch()
            gateway.deliver(ALICE, _msg("b"))
            messages = await session.fetch()
            self.assertEqual([m.remote_id for m in messages], ["a", "b"])
            self.assertEqual(messages[0].local_id, first.local_id)
            self.assertEqual(session.remote_index["a"], first.local_id)
            self.assertNotEqual(messages[1].local_id, first.local_id)

        asyncio.run(run())

    def test_dedup_by_remote_id_not_metadata(self):
        """Identical metadata with different ids stays two messages; a repeated id stays one."""
        gateway = MockMailGateway()
        gateway.deliver(ALICE, _msg(7, subject="Same"))
        gateway.deliver(ALICE, _msg(8, subject="Same"))
        gateway.deliver(ALICE, _msg(7, subject="Same"))

        async def run():
            session = await login(gateway, ALICE)
            messages = await session.fetch()
            self.assertEqual([m.remote_id for m in messages], [7, 8])
            self.assertEqual(len(set(m.local_id for m in messages)), 2)

        asyncio.run(run())

    def test_local_ids_are_not_remote_ids(self):
        gateway = MockMailGateway()
        gateway.deliver(ALICE, _msg("0123456789abcdef"))

        async def run():
            session = await login(gateway, ALICE)
            (msg,) = await session.fetch()
            self.assertNotEqual(msg.local_id, "0123456789abcdef")
            self.assertIn(msg.local_id, session)

        asyncio.run(run())

    def test_failed_fetch_leaves_state_unchanged(self):
        gateway = MockMailGateway()
        gateway.deliver(ALICE, _msg(1))

        async def run():
            session = await login(gateway, ALICE)
            await session.fetch()
            gateway.deliver(ALICE, _msg(2))
            gateway.fail_next()
            with self.assertRaises(TransportFailure):
                await session.fetch()
            self.assertEqual(len(session), 1)
            self.assertEqual(list(session.remote_index), [1])

        asyncio.run(run())

    def test_read_unknown_id_makes_no_call(self):
        gateway = MockMailGateway()

        async def run():
            session = await login(gateway, ALICE)
            with self.assertRaises(UnknownIdentifier) as ctx:
                await session.read("nonexistent-id")
            self.assertEqual(ctx.exception.local_id, "nonexistent-id")
            self.assertEqual(_calls(gateway, "read_message"), [])
            with self.assertRaises(UnknownIdentifier):
                session.get("nonexistent-id")

        asyncio.run(run())

    def test_read_refetches_and_overwrites_body(self):
        gateway = MockMailGateway()
        stored = _msg(5, text="first")
        gateway.deliver(ALICE, stored)

        async def run():
            session = await login(gateway, ALICE)
            (msg,) = await session.fetch()
            await session.read(msg.local_id)
            self.assertEqual(msg.body.text, "first")
            stored["textBody"] = "second"
            await session.read(msg.local_id)
            self.assertEqual(msg.body.text, "second")
            self.assertEqual(len(_calls(gateway, "read_message")), 2)

        asyncio.run(run())

    def test_read_failure_keeps_body_absent(self):
        gateway = MockMailGateway()
        gateway.deliver(ALICE, _msg(5))

        async def run():
            session = await login(gateway, ALICE)
            (msg,) = await session.fetch()
            gateway.fail_next()
            with self.assertRaises(TransportFailure):
                await session.read(msg.local_id)
            self.assertIsNone(msg.body)

        asyncio.run(run())

    def test_concurrent_fetches_assign_one_id_per_message(self):
        gateway = MockMailGateway()
        for i in range(20):
            gateway.deliver(ALICE, _msg(i))

        async def run():
            session = await login(gateway, ALICE)
            await asyncio.gather(*(session.fetch() for _ in range(5)))
            self.assertEqual(len(session), 20)
            self.assertEqual(len(set(session.remote_index.values())), 20)

        asyncio.run(run())

    def test_login_rejects_malformed_address(self):
        async def run():
            with self.assertRaises(ValueError):
                await login(MockMailGateway(), "not-an-address")

        asyncio.run(run())

    def test_list_domains(self):
        gateway = MockMailGateway(domains=["one.test", "two.test"])

        async def run():
            session = await login(gateway, ALICE)
            self.assertEqual(await session.list_domains(), ["one.test", "two.test"])

        asyncio.run(run())


if __name__ == "__main__":
    unittest.main()
