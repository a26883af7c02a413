# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import datetime as _dt

import pytest

from passkit.config import PassConfig
from passkit.errors import BarcodeFormatError, ConstructionError, DuplicateKeyError
from passkit.model import PartitionedBundle, PassCategory
from passkit.pkpass import Pass


def test_construction_detects_category_and_loads_fields(make_model, pass_json, identity) -> None:
	section = {
		"primaryFields": [{"key": "balance", "value": "21.75", "label": "Balance"}],
		"backFields": [{"key": "terms", "value": "..."}, {"key": "broken"}],
	}
	p = Pass(make_model(pass_json("storeCard", section)), identity)
	assert p.category is PassCategory.STORE_CARD
	assert p.primary_fields.keys() == ["balance"]
	assert p.back_fields.keys() == ["terms"]
	assert len(p.fields) == 2


def test_construction_rejects_missing_category(make_model, identity) -> None:
	with pytest.raises(ConstructionError) as excinfo:
		Pass(make_model(b'{"description": "no category"}'), identity)
	assert excinfo.value.reason_code == "NO_PASS_TYPE"


def test_construction_rejects_unparsable_pass_json(make_model, identity) -> None:
	with pytest.raises(ConstructionError) as excinfo:
		Pass(make_model(b"{not json"), identity)
	assert excinfo.value.reason_code == "PASSFILE_VALIDATION_FAILED"


def test_construction_rejects_bad_inputs(make_model, identity) -> None:
	with pytest.raises(ConstructionError, match="REQUIR_VALID_FAILED"):
		Pass({"pass.json": b"{}"}, identity)  # type: ignore[arg-type]
	with pytest.raises(ConstructionError, match="REQUIR_VALID_FAILED"):
		Pass(make_model(), object())  # type: ignore[arg-type]
	with pytest.raises(ConstructionError, match="OVV_KEYS_BADFORMAT"):
		Pass(make_model(), identity, overrides="serialNumber")  # type: ignore[arg-type]


def test_model_requires_pass_json_and_icon() -> None:
	with pytest.raises(ConstructionError, match="MODEL_UNINITIALIZED"):
		PartitionedBundle(bundle={"pass.json": b"{}"})
	with pytest.raises(ConstructionError, match="MODEL_UNINITIALIZED"):
		PartitionedBundle(bundle={"icon.png": b"x"})


def test_duplicate_template_field_keys_fail_construction(make_model, pass_json, identity) -> None:
	section = {
		"primaryFields": [{"key": "k", "value": "1"}],
		"headerFields": [{"key": "k", "value": "2"}],
	}
	with pytest.raises(DuplicateKeyError):
		Pass(make_model(pass_json("eventTicket", section)), identity)


def test_overrides_take_precedence(make_model, pass_json, identity) -> None:
	model = make_model(pass_json(serialNumber="from-template", logoText="Template"))
	p = Pass(model, identity, overrides={"serialNumber": "from-override", "teamIdentifier": "IGNORED"})
	assert p.props["serialNumber"] == "from-override"
	assert p.props["teamIdentifier"] == "ABCDE12345"
	assert p.props["logoText"] == "Template"


def test_props_is_a_read_only_snapshot(make_model, identity) -> None:
	p = Pass(make_model(), identity)
	snap = p.props
	with pytest.raises(TypeError):
		snap["voided"] = True  # type: ignore[index]
	p.void()
	assert "voided" not in snap
	assert p.props["voided"] is True


def test_dates_set_and_clear(make_model, identity) -> None:
	p = Pass(make_model(), identity)
	when = _dt.datetime(2027, 1, 2, 3, 4, 5, tzinfo=_dt.timezone.utc)
	p.expiration(when).relevant_date(when)
	assert p.props["expirationDate"] == "2027-01-02T03:04:05+00:00"
	assert p.props["relevantDate"] == "2027-01-02T03:04:05+00:00"

	p.expiration("tomorrow")
	assert p.props["expirationDate"] == "2027-01-02T03:04:05+00:00"

	p.expiration(None).relevant_date(None)
	assert "expirationDate" not in p.props
	assert "relevantDate" not in p.props


def test_beacons_and_locations_filter_invalid_items(make_model, identity) -> None:
	p = Pass(make_model(), identity)
	p.beacons([{"proximityUUID": "E2C56DB5-DFFB-48D2-B060-D0F5A71096E0", "major": 1}, {"major": 2}])
	p.locations([{"latitude": 45.0, "longitude": 9.0, "relevantText": "here"}])
	assert p.props["beacons"] == [{"proximityUUID": "E2C56DB5-DFFB-48D2-B060-D0F5A71096E0", "major": 1}]
	assert p.props["locations"][0]["relevantText"] == "here"

	# Nothing valid: previous value is kept.
	p.locations([{"latitude": "x"}])
	assert len(p.props["locations"]) == 1

	p.beacons(None).locations(None)
	assert "beacons" not in p.props
	assert "locations" not in p.props


def test_barcodes_from_message_and_single_barcode_choice(make_model, identity) -> None:
	p = Pass(make_model(), identity)
	p.barcodes("12345")
	barcodes = p.props["barcodes"]
	assert len(barcodes) == 4
	assert {b["format"] for b in barcodes} == {
		"PKBarcodeFormatQR",
		"PKBarcodeFormatPDF417",
		"PKBarcodeFormatAztec",
		"PKBarcodeFormatCode128",
	}
	assert all(b["message"] == "12345" for b in barcodes)

	with pytest.raises(BarcodeFormatError) as excinfo:
		p.barcode("PKBarcodeFormatCode128")
	assert excinfo.value.reason_code == "BRC_BW_FORMAT_UNSUPPORTED"
	assert "barcode" not in p.props

	p.barcode("PKBarcodeFormatQR")
	assert p.props["barcode"] == {"format": "PKBarcodeFormatQR", "message": "12345", "messageEncoding": "iso-8859-1"}

	p.barcode(None)
	assert "barcode" not in p.props


def test_barcode_choice_without_pool_is_ignored(make_model, identity) -> None:
	p = Pass(make_model(), identity)
	p.barcode("PKBarcodeFormatQR")
	assert "barcode" not in p.props

	p.barcodes([{"format": "PKBarcodeFormatPDF417", "message": "m", "altText": "alt"}, {"format": "nope", "message": "m"}])
	assert len(p.props["barcodes"]) == 1
	p.barcode("PKBarcodeFormatAztec")
	assert "barcode" not in p.props
	p.barcode("PKBarcodeFormatPDF417")
	assert p.props["barcode"]["altText"] == "alt"

	p.barcodes(None)
	assert "barcodes" not in p.props


def test_nfc_set_invalid_and_clear(make_model, identity) -> None:
	p = Pass(make_model(), identity)
	p.nfc({"message": "reward-id-1", "encryptionPublicKey": "MDkwEwYHKoZIzj0CAQ"})
	assert p.props["nfc"]["message"] == "reward-id-1"
	p.nfc({"encryptionPublicKey": "missing message"})
	assert p.props["nfc"]["message"] == "reward-id-1"
	p.nfc(None)
	assert "nfc" not in p.props


def test_transit_type_validation(make_model, pass_json, identity) -> None:
	p = Pass(make_model(pass_json("boardingPass", {"transitType": "PKTransitTypeTrain"})), identity)
	assert p.transit_type == "PKTransitTypeTrain"
	p.transit_type = "PKTransitTypeSpaceship"
	assert p.transit_type == "PKTransitTypeTrain"
	p.transit_type = "PKTransitTypeAir"
	assert p.transit_type == "PKTransitTypeAir"

	q = Pass(make_model(pass_json("boardingPass", {"transitType": "Rocket"})), identity)
	assert q.transit_type is None


def test_localize_ignores_bad_arguments(make_model, identity) -> None:
	p = Pass(make_model(), identity)
	p.localize("", {"a": "b"}).localize("fr", ["not", "a", "mapping"])  # type: ignore[arg-type]
	assert p._localizer.languages == []
	p.localize("fr").localize("it", {"hello": "ciao"})
	assert p._localizer.languages == ["fr", "it"]


def test_config_rejects_unknown_algorithms() -> None:
	with pytest.raises(ConstructionError, match="CONFIG_INVALID"):
		PassConfig(digest_algorithm="nope")
	with pytest.raises(ConstructionError, match="CONFIG_INVALID"):
		PassConfig(digest_algorithm="shake_128")
	with pytest.raises(ConstructionError, match="CONFIG_INVALID"):
		PassConfig(signature_hash="md5")
	with pytest.raises(ConstructionError, match="CONFIG_INVALID"):
		PassConfig(compression="bzip2")
	assert PassConfig(digest_algorithm="sha256").digest_algorithm == "sha256"


@pytest.mark.parametrize("content", ["text", 4])
def test_model_requires_bytes_for_localization_files(content: object) -> None:
	with pytest.raises(ConstructionError) as excinfo:
		PartitionedBundle(
			bundle={"pass.json": b"{}", "icon.png": b"i"},
			l10n_bundle={"fr": {"pass.strings": content}},  # type: ignore[dict-item]
		)
	assert excinfo.value.reason_code == "MODEL_NOT_VALID"
	assert excinfo.value.path == "fr.lproj/pass.strings"


def test_barcode_choice_matches_format_fragment(make_model, identity) -> None:
	p = Pass(make_model(), identity)
	p.barcodes("abc").barcode("qr")
	assert p.props["barcode"]["format"] == "PKBarcodeFormatQR"
	p.barcode("pdf417")
	assert p.props["barcode"]["format"] == "PKBarcodeFormatPDF417"
	with pytest.raises(BarcodeFormatError):
		p.barcode("CODE128")
