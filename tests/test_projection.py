import numpy as np

from sas360_app.stitching.projection import concatenate_strip, fit_equirectangular, is_equirectangular, to_rgb


def test_fit_equirectangular_pads_strip_around_horizon():
    strip = np.full((100, 400, 3), 255, dtype=np.uint8)

    result = fit_equirectangular(strip)

    assert result.shape == (200, 400, 3)
    assert is_equirectangular(result)
    assert np.all(result[:50] == 0)
    assert np.all(result[50:150] == 255)
    assert np.all(result[150:] == 0)


def test_fit_equirectangular_keeps_existing_two_to_one():
    image = np.ones((256, 512, 3), dtype=np.uint8)
    assert fit_equirectangular(image) is image


def test_fit_equirectangular_widens_tall_input():
    tall = np.full((300, 400, 3), 9, dtype=np.uint8)

    result = fit_equirectangular(tall)

    assert result.shape == (300, 600, 3)
    assert np.all(result[:, :100] == 0)
    assert np.all(result[:, 100:500] == 9)


def test_fit_equirectangular_odd_width():
    result = fit_equirectangular(np.ones((10, 41, 3), dtype=np.uint8))
    assert result.shape == (21, 42, 3)


def test_is_equirectangular():
    assert is_equirectangular(np.zeros((500, 1000, 3), dtype=np.uint8))
    assert not is_equirectangular(np.zeros((500, 500, 3), dtype=np.uint8))


def test_concatenate_strip_scales_down_to_max_height():
    first = np.full((1200, 800, 3), 10, dtype=np.uint8)
    second = np.full((1200, 800, 3), 20, dtype=np.uint8)

    strip = concatenate_strip([first, second], max_height=600)

    assert strip.shape == (600, 800, 3)
    assert np.all(strip[:, :400] == 10)
    assert np.all(strip[:, 400:] == 20)


def test_concatenate_strip_never_upscales_and_crops_to_first_height():
    short = np.full((100, 50, 3), 1, dtype=np.uint8)
    tall = np.full((300, 60, 3), 2, dtype=np.uint8)

    strip = concatenate_strip([short, tall], max_height=600)

    assert strip.shape == (100, 110, 3)
    assert np.all(strip[:, 50:] == 2)


def test_concatenate_strip_shorter_frames_leave_black():
    tall = np.full((100, 20, 3), 5, dtype=np.uint8)
    short = np.full((40, 20, 3), 7, dtype=np.uint8)

    strip = concatenate_strip([tall, short])

    assert np.all(strip[:40, 20:] == 7)
    assert np.all(strip[40:, 20:] == 0)


def test_concatenate_strip_empty():
    assert concatenate_strip([]) is None


def test_concatenate_strip_mixes_gray_rgba_and_rgb():
    rgb = np.full((40, 40, 3), 10, dtype=np.uint8)
    gray = np.full((40, 40), 20, dtype=np.uint8)
    rgba = np.full((40, 40, 4), 30, dtype=np.uint8)
    single = np.full((40, 40, 1), 40, dtype=np.uint8)

    strip = concatenate_strip([rgba, rgb, gray, single])

    assert strip.shape == (40, 160, 3)
    assert np.all(strip[:, :40] == 30)
    assert np.all(strip[:, 80:120] == 20)
    assert np.all(strip[:, 120:] == 40)


def test_to_rgb_rejects_unsupported_channels():
    assert to_rgb(np.zeros((4, 4, 2), dtype=np.uint8)) is None
    assert to_rgb(np.zeros((4, 4, 3), dtype=np.uint8)).shape == (4, 4, 3)
