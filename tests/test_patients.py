"""Tests for the patient source."""

import json

from lab_bundle.services.patients import find_patient, load_patients, source_id


def test_load_list(tmp_path):
    path = tmp_path / "patients.json"
    path.write_text(json.dumps([{"id": 1, "name": "A"}, "junk", {"id": "2"}]))
    assert load_patients(path) == [{"id": 1, "name": "A"}, {"id": "2"}]


def test_non_list_payload(tmp_path):
    path = tmp_path / "patients.json"
    path.write_text(json.dumps({"patients": []}))
    assert load_patients(path) == []


def test_missing_file(tmp_path):
    assert load_patients(tmp_path / "nope.json") == []


def test_find_patient_compares_as_strings():
    patients = [{"id": 1, "name": "A"}, {"id": "2", "name": "B"}]
    assert find_patient(patients, "1")["name"] == "A"
    assert find_patient(patients, "2")["name"] == "B"
    assert find_patient(patients, "3") is None
    assert find_patient(patients, None) is None


def test_malformed_json(tmp_path):
    path = tmp_path / "patients.json"
    path.write_text('[{"id": 1,')
    assert load_patients(path) == []


def test_source_id_of_null_or_missing_id_is_empty():
    assert source_id({"id": None, "name": "A"}) == ""
    assert source_id({"name": "A"}) == ""
    assert source_id(None) == ""
    assert source_id({"id": 0}) == "0"


def test_null_id_record_is_never_matched():
    assert find_patient([{"id": None, "name": "A"}], "None") is None
