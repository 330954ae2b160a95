"""Tests for the session result gallery."""

import base64
import threading

import pytest
from pydantic import ValidationError

from variant_studio.core.gallery import ResultGallery
from variant_studio.core.schemas import GeneratedVariant


def make_variant(payload: bytes = b"png-bytes", **kwargs) -> GeneratedVariant:
    encoded = base64.b64encode(payload).decode("ascii")
    return GeneratedVariant(image_url=f"data:image/png;base64,{encoded}", **kwargs)


class TestResultGallery:
    def test_starts_empty(self, gallery):
        assert len(gallery) == 0
        assert gallery.list() == []

    def test_append_keeps_insertion_order(self, gallery):
        variants = [make_variant(prompt=f"prompt {i}") for i in range(3)]
        for variant in variants:
            gallery.append(variant)

        assert gallery.list() == variants
        assert gallery.get(2) is variants[2]

    def test_list_returns_a_copy(self, gallery):
        gallery.append(make_variant())

        snapshot = gallery.list()
        snapshot.clear()

        assert len(gallery) == 1

    def test_get_out_of_range_raises(self, gallery):
        gallery.append(make_variant())

        with pytest.raises(IndexError):
            gallery.get(1)
        with pytest.raises(IndexError):
            gallery.get(-1)

    def test_index_of(self, gallery):
        first, second = make_variant(), make_variant()
        gallery.append(first)
        gallery.append(second)

        assert gallery.index_of(second.variant_id) == 1
        assert gallery.index_of("missing") == -1

    def test_variants_are_immutable(self):
        variant = make_variant()

        with pytest.raises(ValidationError):
            variant.prompt = "changed"

    def test_concurrent_appends_are_all_kept(self):
        gallery = ResultGallery()

        def worker():
            for _ in range(50):
                gallery.append(make_variant())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(gallery) == 400
        assert len({v.variant_id for v in gallery.list()}) == 400


class TestExport:
    def test_export_returns_decoded_bytes(self, gallery):
        variant = make_variant(b"\x89PNG image")

        stream = gallery.export(variant, "food-variant-1")

        assert stream.read() == b"\x89PNG image"
        assert stream.name == "food-variant-1.png"

    def test_filename_is_sanitized(self, gallery):
        variant = make_variant()

        assert gallery.export_filename(variant, "../my cake/photo") == "my-cake-photo.png"

    def test_existing_extension_is_not_doubled(self, gallery):
        variant = make_variant()

        assert gallery.export_filename(variant, "cake.png") == "cake.png"

    def test_blank_name_falls_back_to_variant_id(self, gallery):
        variant = make_variant()

        assert (
            gallery.export_filename(variant, "///")
            == f"food-variant-{variant.variant_id}.png"
        )

    def test_export_does_not_modify_gallery(self, gallery):
        variant = make_variant()
        gallery.append(variant)

        gallery.export(variant, "x")

        assert gallery.list() == [variant]
