import unittest
from unittest.mock import patch

from interior_cms.backend import (
    Configured,
    Unconfigured,
    create_backend,
    get_backend,
    init_backend,
    is_backend_ready,
    set_backend,
)
from interior_cms.config import settings


class CreateBackendTests(unittest.TestCase):
    def test_missing_url_and_key_is_unconfigured(self):
        backend = create_backend("", "")
        self.assertIsInstance(backend, Unconfigured)
        self.assertIn("SUPABASE_URL", backend.reason)
        self.assertIn("SUPABASE_ANON_KEY", backend.reason)

    def test_missing_key_only(self):
        backend = create_backend("https://project.supabase.co", None)
        self.assertIsInstance(backend, Unconfigured)
        self.assertNotIn("SUPABASE_URL", backend.reason)

    def test_invalid_url_scheme_raises(self):
        with self.assertRaises(ValueError):
            create_backend("ftp://project.supabase.co", "anon-key")

    def test_builds_client_when_both_values_present(self):
        sentinel = object()
        with patch("interior_cms.backend.create_client", return_value=sentinel) as factory:
            backend = create_backend("https://project.supabase.co", "anon-key")

        factory.assert_called_once_with("https://project.supabase.co", "anon-key")
        self.assertIsInstance(backend, Configured)
        self.assertIs(backend.client, sentinel)


class ProcessBackendTests(unittest.TestCase):
    def tearDown(self):
        set_backend(None)

    def test_get_backend_is_built_once(self):
        set_backend(None)
        with patch.object(settings, "SUPABASE_URL", ""), patch.object(settings, "SUPABASE_ANON_KEY", ""):
            first = get_backend()
            second = get_backend()
        self.assertIs(first, second)
        self.assertFalse(is_backend_ready())

    def test_set_backend_replaces_handle(self):
        set_backend(Configured(client=object()))
        self.assertTrue(is_backend_ready())

    def test_init_backend_falls_back_on_invalid_url(self):
        set_backend(None)
        with patch.object(settings, "SUPABASE_URL", "not-a-url"), patch.object(settings, "SUPABASE_ANON_KEY", "anon-key"):
            init_backend()
            backend = get_backend()

        self.assertIsInstance(backend, Unconfigured)
        self.assertIn("Invalid SUPABASE_URL", backend.reason)


if __name__ == "__main__":
    unittest.main()
