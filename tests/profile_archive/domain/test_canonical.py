import json
import unittest

from src.profile_archive.domain.canonical import canonical_bytes, canonicalize, compute_fingerprint


class CanonicalizeTests(unittest.TestCase):
    def test_insertion_order_does_not_change_canonical_form(self):
        a = {"name": "Alice", "skills": ["Logo", "Icon"], "meta": {"x": 1, "y": 2}}
        b = {"meta": {"y": 2, "x": 1}, "skills": ["Logo", "Icon"], "name": "Alice"}

        form_a = canonicalize(a)
        form_b = canonicalize(b)
        self.assertEqual(form_a.payload, form_b.payload)
        self.assertEqual(form_a.fingerprint, form_b.fingerprint)

    def test_payload_is_compact_sorted_utf8_json(self):
        payload = canonical_bytes({"b": 1, "a": "Café"})
        self.assertEqual(payload, '{"a":"Café","b":1}'.encode("utf-8"))

    def test_list_order_is_significant(self):
        self.assertNotEqual(
            canonicalize({"skills": ["a", "b"]}).fingerprint,
            canonicalize({"skills": ["b", "a"]}).fingerprint,
        )

    def test_different_values_have_different_fingerprints(self):
        self.assertNotEqual(
            canonicalize({"title": "Logo Design"}).fingerprint,
            canonicalize({"title": "Icon Set"}).fingerprint,
        )

    def test_fingerprint_is_sha256_of_payload(self):
        form = canonicalize({"title": "Logo Design"})
        self.assertEqual(len(form.fingerprint), 64)
        self.assertEqual(form.fingerprint, compute_fingerprint(form.payload))

    def test_to_record_round_trips_tuples_as_lists(self):
        form = canonicalize({"skills": ("a", "b")})
        self.assertEqual(form.to_record(), {"skills": ["a", "b"]})
        self.assertEqual(json.loads(form.payload), {"skills": ["a", "b"]})
