"""Tests for gamut_colorengine module."""
from __future__ import annotations

import itertools

import numpy as np
import pytest

from gamut_colorengine import (
    TRANSFORM_EDGES,
    Color,
    TransformOptions,
    chromatic_adaptation,
    contrast_ratio,
    expand_rgb,
    luv_to_lchuv,
    normalize_rgb,
    normalize_to_model_range,
    polar_coordinates,
    rgb_to_xyz,
    transform,
    xyy_to_xyz,
    xyz_to_luv,
    xyz_to_rgb,
    xyz_to_xyy,
)
from gamut_errors import (
    MissingReferenceDataError,
    ModelMismatchError,
    ShapeError,
    UnsupportedTransformError,
)
from gamut_registry import AdaptationMethod, ColorModel, ColorSpace, Illuminant, whitepoint

WHITE = Color(ColorModel.RGB, [255.0, 255.0, 255.0])
BLACK = Color(ColorModel.RGB, [0.0, 0.0, 0.0])


class TestColor:
    """Tests for the tagged colour type."""

    def test_values_read_only(self) -> None:
        c = Color(ColorModel.XYZ, [0.1, 0.2, 0.3])
        with pytest.raises(ValueError):
            c.values[0] = 1.0

    def test_model_parsed_from_string(self) -> None:
        assert Color("LUV", [50.0, 0.0, 0.0]).model is ColorModel.LUV

    def test_batch(self) -> None:
        c = Color(ColorModel.RGB, np.zeros((5, 3)))
        assert c.is_batch
        assert len(c) == 5

    def test_bad_shape(self) -> None:
        with pytest.raises(ShapeError):
            Color(ColorModel.RGB, [1.0, 2.0])

    def test_does_not_alias_input(self) -> None:
        raw = np.array([1.0, 2.0, 3.0])
        c = Color(ColorModel.RGB, raw)
        raw[0] = 9.0
        assert c.values[0] == 1.0


class TestDispatch:
    """Tests for the transform table."""

    def test_registered_edges(self) -> None:
        assert len(TRANSFORM_EDGES) == 16
        assert (ColorModel.RGB, ColorModel.LCHUV) in TRANSFORM_EDGES
        assert (ColorModel.XYY, ColorModel.RGB) in TRANSFORM_EDGES

    def test_reserved_models_unsupported(self) -> None:
        """LAB and LCHab are reserved; no edges reach them."""
        with pytest.raises(UnsupportedTransformError):
            transform(ColorModel.RGB, ColorModel.LAB)
        with pytest.raises(UnsupportedTransformError):
            transform("LCHab", "XYZ")

    def test_identity_pair_unsupported(self) -> None:
        with pytest.raises(UnsupportedTransformError):
            transform(ColorModel.XYZ, ColorModel.XYZ)

    def test_unknown_model(self) -> None:
        with pytest.raises(MissingReferenceDataError):
            transform("HSV", "XYZ")

    def test_wrong_tag_rejected(self) -> None:
        """An XYZ triple must not reach an RGB-only edge."""
        xyz = Color(ColorModel.XYZ, [0.5, 0.5, 0.5])
        with pytest.raises(ModelMismatchError):
            rgb_to_xyz(xyz, ColorSpace.SRGB, Illuminant.D65)

    def test_untagged_values_rejected(self) -> None:
        with pytest.raises(ModelMismatchError):
            rgb_to_xyz([255.0, 255.0, 255.0], ColorSpace.SRGB, Illuminant.D65)  # type: ignore[arg-type]

    def test_composed_edge_matches_chain(self, rng: np.random.Generator) -> None:
        rgb = Color(ColorModel.RGB, rng.uniform(0, 255, size=(20, 3)))
        direct = transform(ColorModel.RGB, ColorModel.LCHUV)(rgb, ColorSpace.DISPLAY_P3, Illuminant.D50)
        xyz = rgb_to_xyz(rgb, ColorSpace.DISPLAY_P3, Illuminant.D50)
        chained = luv_to_lchuv(xyz_to_luv(xyz, ColorSpace.DISPLAY_P3, Illuminant.D50))
        assert direct.model is ColorModel.LCHUV
        np.testing.assert_array_equal(direct.values, chained.values)

    def test_missing_illuminant(self) -> None:
        with pytest.raises(MissingReferenceDataError) as info:
            rgb_to_xyz(WHITE, ColorSpace.SRGB, "D93")
        assert info.value.field == "whitepoint"


class TestRgbXyz:
    """Tests for the RGB ↔ XYZ edges."""

    def test_white_is_native_whitepoint(self) -> None:
        xyz = rgb_to_xyz(WHITE, ColorSpace.SRGB, Illuminant.D65)
        np.testing.assert_allclose(xyz.values, whitepoint(Illuminant.D65), atol=1e-12)

    def test_white_is_adapted_to_reference(self) -> None:
        """Native D65 white adapts onto the requested D50 white."""
        xyz = rgb_to_xyz(WHITE, ColorSpace.SRGB, Illuminant.D50)
        np.testing.assert_allclose(xyz.values, whitepoint(Illuminant.D50), atol=1e-9)

    def test_black(self) -> None:
        xyz = rgb_to_xyz(BLACK, ColorSpace.SRGB, Illuminant.D65)
        np.testing.assert_array_equal(xyz.values, [0.0, 0.0, 0.0])

    def test_single_in_single_out(self) -> None:
        assert rgb_to_xyz(WHITE, ColorSpace.SRGB, Illuminant.D65).values.shape == (3,)

    def test_compand_flag(self) -> None:
        """Without companding, encoded mid-grey is treated as linear."""
        grey = Color(ColorModel.RGB, [127.5, 127.5, 127.5])
        linear = rgb_to_xyz(grey, "sRGB", "D65", TransformOptions(compand=False))
        companded = rgb_to_xyz(grey, "sRGB", "D65")
        assert linear.values[1] == pytest.approx(0.5)
        assert companded.values[1] == pytest.approx(0.214041, abs=1e-6)

    def test_bit_depth(self) -> None:
        white_16 = Color(ColorModel.RGB, [65535.0, 65535.0, 65535.0])
        xyz = rgb_to_xyz(white_16, ColorSpace.PRO_PHOTO, Illuminant.D50, TransformOptions(bit_depth=16))
        np.testing.assert_allclose(xyz.values, whitepoint(Illuminant.D50), atol=1e-12)

    @pytest.mark.parametrize(
        "space, illuminant", list(itertools.product(ColorSpace, Illuminant))
    )
    def test_round_trip(self, space: ColorSpace, illuminant: Illuminant, rng: np.random.Generator) -> None:
        """XYZ → RGB(RGB → XYZ(c)) recovers c for 1000 random colours."""
        normalized = rng.uniform(0.0, 1.0, size=(1000, 3))
        rgb = Color(ColorModel.RGB, expand_rgb(normalized))
        back = xyz_to_rgb(rgb_to_xyz(rgb, space, illuminant), space, illuminant)
        assert back.model is ColorModel.RGB
        np.testing.assert_allclose(normalize_rgb(back.values), normalized, atol=1e-6)

    @pytest.mark.parametrize("method", list(AdaptationMethod))
    def test_round_trip_any_adaptation(self, method: AdaptationMethod, rng: np.random.Generator) -> None:
        opts = TransformOptions(adaptation=method)
        rgb = Color(ColorModel.RGB, rng.uniform(0, 255, size=(100, 3)))
        back = xyz_to_rgb(rgb_to_xyz(rgb, "adobeRGB", "F11", opts), "adobeRGB", "F11", opts)
        np.testing.assert_allclose(back.values, rgb.values, atol=1e-6)


class TestChromaticAdaptation:
    """Tests for whitepoint adaptation."""

    def test_identity_is_bit_exact(self, rng: np.random.Generator) -> None:
        xyz = Color(ColorModel.XYZ, rng.uniform(0.0, 1.0, size=(50, 3)))
        adapted = chromatic_adaptation(xyz, Illuminant.D65, Illuminant.D65)
        np.testing.assert_array_equal(adapted.values, xyz.values)
        assert adapted.values.tobytes() == xyz.values.tobytes()

    def test_whitepoint_maps_to_whitepoint(self) -> None:
        xyz = Color(ColorModel.XYZ, whitepoint(Illuminant.D65))
        adapted = chromatic_adaptation(xyz, "D65", "D50")
        np.testing.assert_allclose(adapted.values, whitepoint(Illuminant.D50), atol=1e-12)

    def test_requires_xyz(self) -> None:
        with pytest.raises(ModelMismatchError):
            chromatic_adaptation(WHITE, Illuminant.D65, Illuminant.D50)


class TestLuv:
    """Tests for the CIELUV and LCHuv edges."""

    def test_white_scenario(self) -> None:
        """sRGB white is L = 100 with zero chroma."""
        luv = transform(ColorModel.RGB, ColorModel.LUV)(WHITE, ColorSpace.SRGB, Illuminant.D65)
        np.testing.assert_allclose(luv.values, [100.0, 0.0, 0.0], atol=1e-3)

    def test_black_is_zero_not_nan(self) -> None:
        """u'/v' of black fall back to zero instead of NaN."""
        luv = transform(ColorModel.RGB, ColorModel.LUV)(BLACK, ColorSpace.SRGB, Illuminant.D65)
        np.testing.assert_array_equal(luv.values, [0.0, 0.0, 0.0])

    def test_linear_segment(self) -> None:
        """Below (6/29)^3, L = κ · Y/Yr."""
        xyz = Color(ColorModel.XYZ, whitepoint(Illuminant.D65) * 0.005)
        luv = xyz_to_luv(xyz, ColorSpace.SRGB, Illuminant.D65)
        assert luv.values[0] == pytest.approx(24389.0 / 27.0 * 0.005)

    @pytest.mark.parametrize("illuminant", [Illuminant.D65, Illuminant.A, Illuminant.F2])
    def test_xyz_round_trip(self, illuminant: Illuminant, rng: np.random.Generator) -> None:
        """LUV → XYZ inverts XYZ → LUV, including the dark linear segment."""
        xyz = Color(ColorModel.XYZ, np.vstack([
            rng.uniform(0.01, 1.0, size=(500, 3)),
            rng.uniform(1e-5, 0.008, size=(100, 3)),
        ]))
        there = transform("XYZ", "LUV")(xyz, ColorSpace.SRGB, illuminant)
        back = transform("LUV", "XYZ")(there, ColorSpace.SRGB, illuminant)
        np.testing.assert_allclose(back.values, xyz.values, atol=1e-9)

    def test_lch_hue_range(self, rng: np.random.Generator) -> None:
        luv = Color(ColorModel.LUV, np.column_stack([
            rng.uniform(0, 100, 500), rng.uniform(-150, 150, 500), rng.uniform(-150, 150, 500),
        ]))
        lch = transform("LUV", "LCHuv")(luv, ColorSpace.SRGB, Illuminant.D65)
        assert np.all(lch.values[:, 2] >= 0.0)
        assert np.all(lch.values[:, 2] < 360.0)
        back = transform("LCHuv", "LUV")(lch, ColorSpace.SRGB, Illuminant.D65)
        np.testing.assert_allclose(back.values, luv.values, atol=1e-9)

    def test_negative_hue_wraps(self) -> None:
        lch = luv_to_lchuv(Color(ColorModel.LUV, [50.0, 0.0, -10.0]))
        assert lch.values[2] == pytest.approx(270.0)
        assert lch.values[1] == pytest.approx(10.0)

    @pytest.mark.parametrize("space", list(ColorSpace))
    def test_rgb_lchuv_round_trip(self, space: ColorSpace, rng: np.random.Generator) -> None:
        rgb = Color(ColorModel.RGB, rng.uniform(1.0, 255.0, size=(200, 3)))
        lch = transform("RGB", "LCHuv")(rgb, space, Illuminant.D65)
        back = transform("LCHuv", "RGB")(lch, space, Illuminant.D65)
        np.testing.assert_allclose(back.values, rgb.values, atol=1e-6)

    @pytest.mark.parametrize("space, illuminant", [
        (ColorSpace.PRO_PHOTO, Illuminant.A),
        (ColorSpace.PRO_PHOTO, Illuminant.F2),
        (ColorSpace.PRO_PHOTO, Illuminant.F11),
        (ColorSpace.ADOBE_WIDE_GAMUT, Illuminant.A),
    ])
    def test_negative_lightness_round_trip(
        self, space: ColorSpace, illuminant: Illuminant, rng: np.random.Generator
    ) -> None:
        """Wide-gamut blues adapt to negative Y; they must not collapse to black."""
        rgb = Color(ColorModel.RGB, np.vstack([
            [[0.0, 0.0, 255.0], [10.0, 0.0, 255.0]],
            rng.uniform(0.0, 255.0, size=(500, 3)),
        ]))
        luv = transform("RGB", "LUV")(rgb, space, illuminant)
        if space is ColorSpace.PRO_PHOTO and illuminant is Illuminant.A:
            assert luv.values[0, 0] < 0.0
        back = transform("LUV", "RGB")(luv, space, illuminant)
        np.testing.assert_allclose(back.values, rgb.values, atol=1e-6)

        lch = transform("RGB", "LCHuv")(rgb, space, illuminant)
        back = transform("LCHuv", "RGB")(lch, space, illuminant)
        np.testing.assert_allclose(back.values, rgb.values, atol=1e-6)


class TestXyy:
    """Tests for the xyY edges."""

    def test_white_chromaticity(self) -> None:
        xyy = transform("RGB", "xyY")(WHITE, ColorSpace.SRGB, Illuminant.D65)
        np.testing.assert_allclose(xyy.values, [0.3127, 0.3290, 1.0], atol=1e-4)

    def test_black_takes_white_chromaticity(self) -> None:
        """Black has no chromaticity; the reference white's is used with Y = 0."""
        xyy = xyz_to_xyy(Color(ColorModel.XYZ, [0.0, 0.0, 0.0]), ColorSpace.SRGB, Illuminant.D50)
        wp = whitepoint(Illuminant.D50)
        np.testing.assert_allclose(xyy.values, [wp[0] / wp.sum(), wp[1] / wp.sum(), 0.0])

    def test_zero_y_is_black(self) -> None:
        xyz = xyy_to_xyz(Color(ColorModel.XYY, [0.3, 0.0, 0.5]))
        np.testing.assert_array_equal(xyz.values, [0.0, 0.0, 0.0])

    def test_round_trip(self, rng: np.random.Generator) -> None:
        rgb = Color(ColorModel.RGB, rng.uniform(0, 255, size=(300, 3)))
        xyy = transform("RGB", "xyY")(rgb, ColorSpace.APPLE_RGB, Illuminant.C)
        back = transform("xyY", "RGB")(xyy, ColorSpace.APPLE_RGB, Illuminant.C)
        np.testing.assert_allclose(back.values, rgb.values, atol=1e-6)


class TestHelpers:
    """Tests for normalisation and plotting helpers."""

    def test_normalize_and_expand(self) -> None:
        np.testing.assert_allclose(normalize_rgb([255.0, 0.0, 51.0]), [1.0, 0.0, 0.2])
        np.testing.assert_allclose(expand_rgb([1.0, 0.5, 0.0], bit_depth=16), [65535.0, 32767.5, 0.0])

    def test_normalize_lch(self) -> None:
        np.testing.assert_allclose(
            normalize_to_model_range([50.0, 200.0, 180.0], ColorModel.LCHUV), [0.5, 0.5, 0.5]
        )

    def test_normalize_luv_magnitudes(self) -> None:
        out = normalize_to_model_range([100.0, -354.0, -262.0], ColorModel.LUV)
        np.testing.assert_allclose(out, [1.0, 1.0, 1.0])

    def test_polar_coordinates(self) -> None:
        """Quarter-turn hue puts chroma on the third axis; lightness is vertical."""
        out = polar_coordinates([0.5, 0.25, 0.25])
        np.testing.assert_allclose(out, [0.0, 0.5, 0.25], atol=1e-12)

    def test_polar_batch(self) -> None:
        assert polar_coordinates(np.zeros((4, 3))).shape == (4, 3)

    def test_contrast_ratio(self) -> None:
        """Black on white is the maximum 21:1."""
        white = rgb_to_xyz(WHITE, ColorSpace.SRGB, Illuminant.D65)
        black = rgb_to_xyz(BLACK, ColorSpace.SRGB, Illuminant.D65)
        assert contrast_ratio(white, black) == pytest.approx(21.0)
        assert contrast_ratio(black, white) == pytest.approx(21.0)
        assert contrast_ratio(white, white) == pytest.approx(1.0)
