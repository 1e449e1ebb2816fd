"""Tests for gamut_registry module."""
from __future__ import annotations

import numpy as np
import pytest

from gamut_companding import CompandMethod, TransferParams
from gamut_errors import MissingReferenceDataError
from gamut_registry import (
    ADAPTATION_MATRICES,
    COLOR_MODELS,
    COLOR_SPACES,
    ILLUMINANTS,
    AdaptationMethod,
    ColorModel,
    ColorSpace,
    ColorSpaceProfile,
    GraphType,
    Illuminant,
    color_model_profile,
    color_space_profile,
    derive_adaptation_matrix,
    derive_rgb_to_xyz_matrix,
    derive_xyz_to_rgb_matrix,
    parse_color_model,
    parse_color_space,
    parse_illuminant,
    primary_matrix,
    whitepoint,
)

# Lindbloom's published sRGB (D65) matrix
SRGB_TO_XYZ_D65 = np.array([
    [0.4124564, 0.3575761, 0.1804375],
    [0.2126729, 0.7151522, 0.0721750],
    [0.0193339, 0.1191920, 0.9503041],
])

# Lindbloom's published Bradford D65 → D50 matrix
BRADFORD_D65_TO_D50 = np.array([
    [ 1.0478112,  0.0228866, -0.0501270],
    [ 0.0295424,  0.9904844, -0.0170491],
    [-0.0092345,  0.0150436,  0.7521316],
])


class TestTables:
    """Tests for the static reference tables."""

    def test_every_illuminant_has_whitepoint(self) -> None:
        assert set(ILLUMINANTS) == set(Illuminant)
        for xyz in ILLUMINANTS.values():
            assert xyz[1] == 1.0

    def test_every_space_has_profile(self) -> None:
        assert set(COLOR_SPACES) == set(ColorSpace)

    def test_every_model_has_profile(self) -> None:
        assert set(COLOR_MODELS) == set(ColorModel)

    def test_tables_are_read_only(self) -> None:
        with pytest.raises(TypeError):
            ILLUMINANTS[Illuminant.E] = (0.0, 0.0, 0.0)  # type: ignore[index]
        with pytest.raises(ValueError):
            ADAPTATION_MATRICES[AdaptationMethod.BRADFORD][0, 0] = 1.0

    def test_luv_plots_lightness_vertically(self) -> None:
        profile = color_model_profile(ColorModel.LUV)
        assert profile.graph_type is GraphType.BOX
        assert profile.axis_order == (1, 0, 2)

    def test_lchuv_is_cylindrical(self) -> None:
        profile = color_model_profile("LCHuv")
        assert profile.graph_type is GraphType.CYLINDRICAL
        assert profile.ranges[1] == (0.0, 400.0)


class TestProfileValidation:
    """Registry data invariants checked at construction."""

    def test_zero_y_primary_rejected(self) -> None:
        """y is a divisor and must never be zero."""
        with pytest.raises(ValueError):
            ColorSpaceProfile(
                label="broken",
                illuminant=Illuminant.D65,
                primaries=((0.64, 0.33), (0.30, 0.0), (0.15, 0.06)),
                transfer=TransferParams(CompandMethod.GAMMA, gamma=2.2),
            )

    def test_two_primaries_rejected(self) -> None:
        with pytest.raises(ValueError):
            ColorSpaceProfile(
                label="broken",
                illuminant=Illuminant.D65,
                primaries=((0.64, 0.33), (0.30, 0.60)),  # type: ignore[arg-type]
                transfer=TransferParams(CompandMethod.GAMMA, gamma=2.2),
            )


class TestLookups:
    """Tests for key parsing and lookups."""

    def test_parse_by_value_and_name(self) -> None:
        assert parse_color_space("sRGB") is ColorSpace.SRGB
        assert parse_color_space("SRGB") is ColorSpace.SRGB
        assert parse_color_space(ColorSpace.PRO_PHOTO) is ColorSpace.PRO_PHOTO
        assert parse_illuminant("D50") is Illuminant.D50
        assert parse_color_model("xyY") is ColorModel.XYY

    def test_unknown_color_space(self) -> None:
        """Unknown colour spaces are reported as missing primaries."""
        with pytest.raises(MissingReferenceDataError) as info:
            parse_color_space("rec2020")
        assert info.value.field == "primaries"
        assert info.value.key == "rec2020"

    def test_unknown_illuminant(self) -> None:
        with pytest.raises(MissingReferenceDataError) as info:
            whitepoint("D93")
        assert info.value.field == "whitepoint"

    def test_missing_reference_data_is_lookup_error(self) -> None:
        with pytest.raises(LookupError):
            color_space_profile("nope")

    def test_whitepoint_is_fresh_copy(self) -> None:
        wp = whitepoint(Illuminant.D65)
        wp[0] = 0.0
        assert whitepoint(Illuminant.D65)[0] == pytest.approx(0.95047)


class TestDerivedMatrices:
    """Tests for matrices derived from chromaticities."""

    def test_primary_matrix_columns(self) -> None:
        m = primary_matrix(((0.64, 0.33), (0.30, 0.60), (0.15, 0.06)))
        np.testing.assert_allclose(m[1], [1.0, 1.0, 1.0])
        assert m[0, 0] == pytest.approx(0.64 / 0.33)

    def test_srgb_matrix_matches_published(self) -> None:
        np.testing.assert_allclose(derive_rgb_to_xyz_matrix(ColorSpace.SRGB), SRGB_TO_XYZ_D65, atol=1e-6)

    @pytest.mark.parametrize("space", list(ColorSpace))
    def test_white_maps_to_native_whitepoint(self, space: ColorSpace) -> None:
        """RGB (1, 1, 1) lands exactly on the reference white."""
        m = derive_rgb_to_xyz_matrix(space)
        native = color_space_profile(space).illuminant
        np.testing.assert_allclose(m @ np.ones(3), whitepoint(native), atol=1e-12)

    def test_explicit_reference_illuminant(self) -> None:
        m = derive_rgb_to_xyz_matrix(ColorSpace.SRGB, Illuminant.D50)
        np.testing.assert_allclose(m @ np.ones(3), whitepoint(Illuminant.D50), atol=1e-12)

    @pytest.mark.parametrize("space", list(ColorSpace))
    def test_inverse_matrix(self, space: ColorSpace) -> None:
        forward = derive_rgb_to_xyz_matrix(space)
        inverse = derive_xyz_to_rgb_matrix(space)
        np.testing.assert_allclose(inverse @ forward, np.eye(3), atol=1e-9)

    def test_derived_matrices_read_only(self) -> None:
        m = derive_rgb_to_xyz_matrix(ColorSpace.SRGB)
        with pytest.raises(ValueError):
            m[0, 0] = 0.0

    def test_bradford_matches_published(self) -> None:
        m = derive_adaptation_matrix(Illuminant.D65, Illuminant.D50)
        np.testing.assert_allclose(m, BRADFORD_D65_TO_D50, atol=1e-5)

    @pytest.mark.parametrize("method", list(AdaptationMethod))
    def test_adaptation_maps_white_to_white(self, method: AdaptationMethod) -> None:
        m = derive_adaptation_matrix(Illuminant.A, Illuminant.D65, method)
        np.testing.assert_allclose(m @ whitepoint(Illuminant.A), whitepoint(Illuminant.D65), atol=1e-12)
