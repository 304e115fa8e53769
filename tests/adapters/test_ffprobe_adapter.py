import pytest

from coffeelib.adapters.tools import FFProbe
from coffeelib.adapters.tools.ffprobe import display_size, parse_duration, stream_rotation


def test_stream_rotation_from_tags_and_side_data() -> None:
    assert stream_rotation({"tags": {"rotate": "90"}}) == 90
    assert stream_rotation({"side_data_list": [{"side_data_type": "Display Matrix", "rotation": -90}]}) == 270
    assert stream_rotation({"tags": {"rotate": "bogus"}}) == 0
    assert stream_rotation({}) == 0


def test_display_size_swaps_for_quarter_turns() -> None:
    assert display_size({"width": 1920, "height": 1080}) == (1920, 1080)
    assert display_size({"width": 1920, "height": 1080, "tags": {"rotate": "90"}}) == (1080, 1920)
    assert display_size({"width": 1920, "height": 1080, "side_data_list": [{"rotation": 270}]}) == (1080, 1920)
    assert display_size({"width": 1920, "height": 1080, "tags": {"rotate": "180"}}) == (1920, 1080)
    assert display_size({"width": None}) == (0, 0)


def test_parse_duration_prefers_format_then_stream() -> None:
    assert parse_duration({"format": {"duration": "12.5"}, "video_stream": {"duration": "3"}}) == 12.5
    assert parse_duration({"format": {"duration": "N/A"}, "video_stream": {"duration": "3.25"}}) == 3.25
    assert parse_duration({"format": {}, "video_stream": {}}) is None
    assert parse_duration({}) is None


def test_find_video_stream_skips_cover_art() -> None:
    streams = [
        {"codec_type": "audio"},
        {"codec_type": "video", "disposition": {"attached_pic": 1}, "width": 300},
        {"codec_type": "video", "width": 640, "height": 360},
    ]
    assert FFProbe._find_video_stream(streams)["width"] == 640
    assert FFProbe._find_video_stream([{"codec_type": "audio"}]) == {}


def test_parse_ffprobe_output() -> None:
    probe = FFProbe(bin_name="definitely-not-ffprobe")
    ok = probe._parse_ffprobe_output(
        '{"format": {"duration": "2.0"}, "streams": [{"codec_type": "video", "width": 4, "height": 2}]}',
        "",
        0,
        "x.mp4",
    )
    assert ok.ok
    assert ok.data["video_stream"]["width"] == 4

    failed = probe._parse_ffprobe_output("", "Invalid data found", 1, "x.mp4")
    assert not failed.ok
    assert failed.code == "FFPROBE_ERROR"


def test_validate_probe_path_rejects_option_like_values() -> None:
    probe = FFProbe(bin_name="definitely-not-ffprobe")
    assert not probe._validate_probe_path("").ok
    assert not probe._validate_probe_path("-i evil").ok
    assert not probe._validate_probe_path("a\nb").ok
    assert probe._validate_probe_path("/media/clip.mp4").ok


def test_unsafe_binary_names_are_rejected() -> None:
    assert not FFProbe(bin_name="ffprobe; rm -rf /").is_available()
    assert not FFProbe(bin_name="").is_available()


@pytest.mark.asyncio
async def test_aread_reports_missing_tool() -> None:
    probe = FFProbe(bin_name="definitely-not-ffprobe")
    assert not probe.is_available()
    res = await probe.aread("/tmp/clip.mp4")
    assert not res.ok
    assert res.code == "TOOL_MISSING"
