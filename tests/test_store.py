import unittest

from fakes import COOKIE_NAME, FakeCookies, FakeSession, make_store

from formguard.csrf.signing import CookieSigner
from formguard.csrf.store import Backend


def counting_factory(*tokens):
    issued = list(tokens)
    calls = []

    def factory():
        calls.append(1)
        return issued.pop(0)

    factory.calls = calls
    return factory


class SessionBackedStoreTests(unittest.TestCase):
    def test_reuses_token_already_in_session(self) -> None:
        session = FakeSession(active=True, data={"csrf_token": "abc123"})
        cookies = FakeCookies()
        store = make_store(session, cookies)

        self.assertEqual(store.get_or_create(), "abc123")
        self.assertIs(store.backend, Backend.SESSION)
        self.assertEqual(cookies.written, [])

    def test_creates_and_stores_token_when_absent(self) -> None:
        session = FakeSession(active=True)
        factory = counting_factory("t" * 64)
        store = make_store(session, token_factory=factory)

        self.assertEqual(store.get_or_create(), "t" * 64)
        self.assertEqual(store.get_or_create(), "t" * 64)
        self.assertEqual(session.data["csrf_token"], "t" * 64)
        self.assertEqual(len(factory.calls), 1)

    def test_validates_against_session_token(self) -> None:
        session = FakeSession(active=True, data={"csrf_token": "abc123"})
        store = make_store(session)

        self.assertTrue(store.validate_against("abc123"))
        self.assertFalse(store.validate_against("abc124"))
        self.assertFalse(store.validate_against(None))

    def test_missing_session_token_never_validates(self) -> None:
        store = make_store(FakeSession(active=True))
        self.assertFalse(store.validate_against(""))
        self.assertFalse(store.validate_against(None))

    def test_session_wins_over_an_existing_cookie(self) -> None:
        signer = CookieSigner("k")
        cookies = FakeCookies({COOKIE_NAME: signer.encode("c" * 64)})
        store = make_store(FakeSession(active=True, data={"csrf_token": "s" * 64}), cookies)

        self.assertFalse(store.validate_against("c" * 64))
        self.assertTrue(store.validate_against("s" * 64))
        self.assertEqual(cookies.written, [])


class CookieBackedStoreTests(unittest.TestCase):
    def test_first_issue_schedules_exactly_one_cookie(self) -> None:
        cookies = FakeCookies()
        factory = counting_factory("x" * 64, "y" * 64)
        store = make_store(FakeSession(), cookies, token_factory=factory)

        first = store.get_or_create()
        second = store.get_or_create()

        self.assertEqual(first, "x" * 64)
        self.assertEqual(second, first)
        self.assertEqual(len(factory.calls), 1)
        self.assertEqual(len(cookies.written), 1)
        name, value, path, session_scoped = cookies.written[0]
        self.assertEqual(name, COOKIE_NAME)
        self.assertEqual(path, "/app")
        self.assertTrue(session_scoped)
        self.assertEqual(CookieSigner("k").decode(value).token, first)
        self.assertIs(store.backend, Backend.COOKIE)

    def test_validates_against_signed_incoming_cookie(self) -> None:
        cookies = FakeCookies({COOKIE_NAME: CookieSigner("k").encode("abc123")})
        store = make_store(FakeSession(), cookies)

        self.assertTrue(store.validate_against("abc123"))
        self.assertFalse(store.validate_against("wrong"))

    def test_cookie_signed_with_another_secret_is_ignored(self) -> None:
        cookies = FakeCookies({COOKIE_NAME: CookieSigner("other").encode("abc123")})
        store = make_store(FakeSession(), cookies)
        self.assertFalse(store.validate_against("abc123"))

    def test_tampered_or_malformed_cookie_returns_false(self) -> None:
        good = CookieSigner("k").encode("abc123")
        digest, _, encoded = good.partition("_")
        for value in ("no-separator", f"{digest}_{encoded[:-2]}AA", f"{digest}_%%%", "_"):
            store = make_store(FakeSession(), FakeCookies({COOKIE_NAME: value}))
            with self.subTest(value=value):
                self.assertFalse(store.validate_against("abc123"))

    def test_missing_cookie_returns_false(self) -> None:
        store = make_store(FakeSession(), FakeCookies())
        self.assertFalse(store.validate_against("abc123"))

    def test_validation_reads_incoming_cookie_not_issued_token(self) -> None:
        cookies = FakeCookies({COOKIE_NAME: CookieSigner("k").encode("old")})
        store = make_store(FakeSession(), cookies, token_factory=counting_factory("new"))

        self.assertEqual(store.get_or_create(), "new")
        self.assertTrue(store.validate_against("old"))
        self.assertFalse(store.validate_against("new"))

    def test_session_started_mid_request_takes_over(self) -> None:
        session = FakeSession()
        cookies = FakeCookies()
        store = make_store(session, cookies, token_factory=counting_factory("x" * 64))

        issued = store.get_or_create()
        session.active = True

        self.assertEqual(store.get_or_create(), issued)
        self.assertIs(store.backend, Backend.SESSION)
        self.assertEqual(session.data["csrf_token"], issued)
        self.assertEqual(len(cookies.written), 1)
        self.assertTrue(store.validate_against(issued))
