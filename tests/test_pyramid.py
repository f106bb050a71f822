import numpy as np
import pytest

from pano_sift.config import SIFTConfig
from pano_sift.pyramid import (
    Pyramid,
    computeNumberOfOctaves,
    generateSigmas,
    buildScaleSpace,
)


@pytest.fixture
def gray_image():
    rng = np.random.default_rng(7)
    return rng.random((48, 40))


@pytest.fixture
def scale_space(gray_image):
    return buildScaleSpace(gray_image, SIFTConfig(octaves=3, scales=3, sigma=1.6))


def test_pyramid_indexing_is_bounds_checked():
    pyramid = Pyramid([['a', 'b'], ['c', 'd']])
    assert pyramid[1, 0] == 'c'
    assert pyramid.num_octaves == 2
    assert pyramid.num_levels == 2
    with pytest.raises(IndexError):
        pyramid[2, 0]
    with pytest.raises(IndexError):
        pyramid[0, 2]
    with pytest.raises(IndexError):
        pyramid[-1, 0]


def test_pyramid_rejects_ragged_octaves():
    with pytest.raises(ValueError):
        Pyramid([['a', 'b'], ['c']])


def test_generate_sigmas_grows_geometrically():
    sigmas = generateSigmas(1.6, 3)
    assert sigmas.size == 6
    assert sigmas[0] == pytest.approx(1.6)
    np.testing.assert_allclose(sigmas[1:] / sigmas[:-1], 2 ** (1 / 3))


def test_compute_number_of_octaves():
    assert computeNumberOfOctaves((64, 80)) == 5
    assert computeNumberOfOctaves((3, 3)) == 1
    assert computeNumberOfOctaves((1, 10)) == 1


def test_gaussian_pyramid_shapes(scale_space):
    gaussian = scale_space.gaussian
    assert gaussian.num_octaves == 3
    assert gaussian.num_levels == 6
    expected_shapes = [(48, 40), (24, 20), (12, 10)]
    for octave_index, shape in enumerate(expected_shapes):
        for level in range(gaussian.num_levels):
            assert gaussian[octave_index, level].shape == shape


def test_first_level_smooths_gray_image(gray_image, scale_space):
    base = scale_space.gaussian[0, 0]
    assert base.std() < gray_image.std()


def test_next_octave_starts_from_down_sampled_level(scale_space):
    source = scale_space.gaussian[0, 3]
    expected = source.reshape(24, 2, 20, 2).mean(axis=(1, 3))
    np.testing.assert_allclose(scale_space.gaussian[1, 0], expected)


def test_dog_is_difference_of_adjacent_gaussian_levels(scale_space):
    gaussian, dog = scale_space.gaussian, scale_space.dog
    assert dog.num_levels == gaussian.num_levels - 1
    for octave_index in range(dog.num_octaves):
        for interval in range(dog.num_levels):
            np.testing.assert_array_equal(
                dog[octave_index, interval],
                gaussian[octave_index, interval + 1] - gaussian[octave_index, interval])


def test_sigma_table_is_carried_forward_unscaled(scale_space):
    sigmas = generateSigmas(1.6, 3)
    for octave_index in range(scale_space.num_octaves):
        for level in range(6):
            assert scale_space.sigma(octave_index, level) == pytest.approx(sigmas[level])
    with pytest.raises(IndexError):
        scale_space.sigma(3, 0)


def test_octave_count_derived_when_not_configured(gray_image):
    scale_space = buildScaleSpace(gray_image, SIFTConfig(scales=2))
    assert scale_space.num_octaves == computeNumberOfOctaves(gray_image.shape)
    assert scale_space.gaussian.num_levels == 5
