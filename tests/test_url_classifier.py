"""Tests for URL classifier."""

import pytest

from vidqueue.core.url_classifier import (
    NOT_RECOGNIZED,
    TRANSCRIBE_ENDPOINT,
    WEB_ENDPOINT,
    YOUTUBE_ENDPOINT,
    YOUTUBE_SHORTS_ENDPOINT,
    Platform,
    URLClassification,
    classify,
    extract_instagram_id,
    extract_tiktok_id,
    extract_youtube_id,
    get_instagram_type,
    get_youtube_type,
    is_processable,
)


class TestClassifyTikTok:
    """Test TikTok classification."""

    def test_classify_tiktok_video(self):
        """Standard @user/video/ID URL → supported TikTok video."""
        result = classify("https://www.tiktok.com/@alice/video/7123456789")

        assert result.platform == Platform.TIKTOK
        assert result.content_type == "video"
        assert result.is_supported is True
        assert result.extracted_id == "7123456789"
        assert result.target_endpoint == TRANSCRIBE_ENDPOINT
        assert result.error_message is None

    def test_classify_tiktok_short_link(self):
        """vm.tiktok.com short links carry a token instead of a numeric ID."""
        result = classify("https://vm.tiktok.com/ZMabc123/")

        assert result.platform == Platform.TIKTOK
        assert result.is_supported is True
        assert result.extracted_id == "ZMabc123"

    def test_classify_tiktok_t_link(self):
        """tiktok.com/t/ links are TikTok."""
        result = classify("https://www.tiktok.com/t/ZTRabc987/")

        assert result.platform == Platform.TIKTOK
        assert result.extracted_id == "ZTRabc987"

    def test_classify_tiktok_embed(self):
        """Embed URLs yield the numeric ID."""
        result = classify("https://www.tiktok.com/embed/7000000000000000001")

        assert result.platform == Platform.TIKTOK
        assert result.extracted_id == "7000000000000000001"

    def test_classify_tiktok_mobile_host(self):
        """m.tiktok.com is accepted."""
        result = classify("https://m.tiktok.com/@bob/video/42")

        assert result.platform == Platform.TIKTOK
        assert result.extracted_id == "42"

    def test_classify_is_case_insensitive(self):
        """Host matching ignores case."""
        result = classify("HTTPS://WWW.TIKTOK.COM/@alice/video/7123456789")

        assert result.platform == Platform.TIKTOK
        assert result.is_supported is True


class TestClassifyInstagram:
    """Test Instagram classification and sub-types."""

    def test_classify_instagram_reel(self):
        """/reel/ → supported reel with shortcode."""
        result = classify("https://www.instagram.com/reel/Cabc123XYZ/")

        assert result.platform == Platform.INSTAGRAM
        assert result.content_type == "reel"
        assert result.is_supported is True
        assert result.extracted_id == "Cabc123XYZ"
        assert result.target_endpoint == TRANSCRIBE_ENDPOINT

    def test_classify_instagram_reels_plural(self):
        """/reels/ is also a reel."""
        result = classify("https://www.instagram.com/reels/Cabc123XYZ/")

        assert result.content_type == "reel"
        assert result.is_supported is True

    def test_classify_instagram_post(self):
        """/p/ → supported post."""
        result = classify("https://www.instagram.com/p/Bxyz_98-7/")

        assert result.platform == Platform.INSTAGRAM
        assert result.content_type == "post"
        assert result.is_supported is True
        assert result.extracted_id == "Bxyz_98-7"

    def test_classify_instagram_profile_unsupported(self):
        """Profile URLs are recognized but not supported."""
        result = classify("https://www.instagram.com/someuser/")

        assert result.platform == Platform.INSTAGRAM
        assert result.content_type == "profile"
        assert result.is_supported is False
        assert "not currently supported" in result.error_message
        assert "profile" in result.error_message

    def test_classify_instagram_story_unsupported(self):
        """Stories are not supported and the message names the sub-type."""
        result = classify("https://www.instagram.com/stories/someuser/3141592653/")

        assert result.content_type == "story"
        assert result.is_supported is False
        assert "stor" in result.error_message

    def test_classify_instagram_tv_unsupported(self):
        """IGTV URLs are not supported but still yield an ID."""
        result = classify("https://www.instagram.com/tv/CTv12345/")

        assert result.content_type == "tv"
        assert result.is_supported is False
        assert result.extracted_id == "CTv12345"

    def test_classify_instagr_am_short_domain(self):
        """instagr.am/p/ is an Instagram post."""
        result = classify("https://instagr.am/p/Bshort1/")

        assert result.platform == Platform.INSTAGRAM
        assert result.content_type == "post"


class TestClassifyYouTube:
    """Test YouTube classification (recognized, not yet supported)."""

    def test_classify_youtube_watch(self):
        """watch?v= → unsupported video with 'coming soon' message."""
        result = classify("https://www.youtube.com/watch?v=dQw4w9WgXcQ")

        assert result.platform == Platform.YOUTUBE
        assert result.content_type == "video"
        assert result.is_supported is False
        assert "coming soon" in result.error_message
        assert result.extracted_id == "dQw4w9WgXcQ"
        assert result.target_endpoint == YOUTUBE_ENDPOINT

    def test_classify_youtube_shorts(self):
        """/shorts/ routes to the shorts endpoint."""
        result = classify("https://www.youtube.com/shorts/abcdefghijk")

        assert result.content_type == "shorts"
        assert result.target_endpoint == YOUTUBE_SHORTS_ENDPOINT
        assert result.extracted_id == "abcdefghijk"

    def test_classify_youtu_be(self):
        """youtu.be short links are YouTube videos."""
        result = classify("https://youtu.be/dQw4w9WgXcQ")

        assert result.platform == Platform.YOUTUBE
        assert result.content_type == "video"
        assert result.extracted_id == "dQw4w9WgXcQ"

    def test_classify_youtube_channel(self):
        """Channel handles are recognized as channels."""
        result = classify("https://www.youtube.com/@somechannel")

        assert result.content_type == "channel"
        assert result.is_supported is False


class TestClassifyWeb:
    """Test generic web fallback."""

    def test_classify_web_article(self):
        """Any other http(s) URL with a domain → unsupported web post."""
        result = classify("https://blog.example.com/posts/hello-world")

        assert result.platform == Platform.WEB
        assert result.content_type == "post"
        assert result.domain == "blog.example.com"
        assert result.target_endpoint == WEB_ENDPOINT
        assert result.is_supported is False
        assert "coming soon" in result.error_message

    def test_domain_only_set_for_web(self):
        """Non-web platforms leave domain unset."""
        assert classify("https://www.tiktok.com/@alice/video/1").domain is None


class TestClassifyInvalid:
    """Test validation failures and unrecognized input."""

    def test_not_a_url(self):
        """Free text → unknown with an 'Invalid URL' message."""
        result = classify("not a url")

        assert result.platform == Platform.UNKNOWN
        assert result.is_supported is False
        assert "Invalid URL" in result.error_message
        assert result.target_endpoint is None

    def test_empty_string(self):
        """Blank input is rejected before parsing."""
        result = classify("   ")

        assert result.platform == Platform.UNKNOWN
        assert result.error_message == "Empty URL provided"

    @pytest.mark.parametrize("value", [None, 123, ["https://tiktok.com"]])
    def test_non_string_input(self, value):
        """Non-string input never raises."""
        result = classify(value)

        assert result.platform == Platform.UNKNOWN
        assert result.is_supported is False
        assert "Invalid URL" in result.error_message

    def test_invalid_port(self):
        """An out-of-range port fails URL parsing."""
        result = classify("https://example.com:99999/video")

        assert result.platform == Platform.UNKNOWN
        assert "Invalid URL format" in result.error_message

    def test_http_without_host(self):
        """http(s) URLs must name a host."""
        result = classify("https:///video/1")

        assert result.platform == Platform.UNKNOWN
        assert "Invalid URL format" in result.error_message

    def test_hostless_scheme_is_not_recognized(self):
        """A valid URL without a host parses but matches no platform."""
        result = classify("mailto:a@b.com")

        assert result.platform == Platform.UNKNOWN
        assert result.is_supported is False
        assert result.error_message == NOT_RECOGNIZED

    def test_unrecognized_scheme(self):
        """A parseable non-http URL matches no platform."""
        result = classify("ftp://files.example.com/video.mp4")

        assert result.platform == Platform.UNKNOWN
        assert result.content_type == "unknown"
        assert result.error_message == NOT_RECOGNIZED


class TestClassifyInvariants:
    """Test properties that hold for every classification."""

    URLS = [
        "https://www.tiktok.com/@alice/video/7123456789",
        "https://www.instagram.com/reel/Cabc123XYZ/",
        "https://www.instagram.com/someuser/",
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://example.org/page",
        "not a url",
        "",
    ]

    @pytest.mark.parametrize("url", URLS)
    def test_deterministic(self, url):
        """Same input → identical output."""
        assert classify(url) == classify(url)

    @pytest.mark.parametrize("url", URLS)
    def test_supported_has_no_error(self, url):
        """is_supported and error_message are mutually exclusive."""
        result = classify(url)

        if result.is_supported:
            assert result.error_message is None
        else:
            assert result.error_message

    @pytest.mark.parametrize("url", URLS)
    def test_only_tiktok_and_instagram_supported(self, url):
        """Support is limited to TikTok and Instagram."""
        result = classify(url)

        if result.is_supported:
            assert result.platform in (Platform.TIKTOK, Platform.INSTAGRAM)

    def test_source_url_is_trimmed(self):
        """Surrounding whitespace is stripped from source_url."""
        result = classify("  https://www.tiktok.com/@alice/video/1  ")

        assert result.source_url == "https://www.tiktok.com/@alice/video/1"
        assert result.is_supported is True

    def test_is_processable(self):
        """is_processable mirrors is_supported."""
        assert is_processable("https://www.instagram.com/reel/Cabc123XYZ/") is True
        assert is_processable("https://www.youtube.com/watch?v=dQw4w9WgXcQ") is False
        assert is_processable(None) is False


class TestHelpers:
    """Test sub-type and ID helpers."""

    def test_get_instagram_type(self):
        assert get_instagram_type("https://instagram.com/reel/x") == "reel"
        assert get_instagram_type("https://instagram.com/p/x") == "post"
        assert get_instagram_type("https://instagram.com/stories/u/1") == "story"
        assert get_instagram_type("https://instagram.com/tv/x") == "tv"
        assert get_instagram_type("https://instagram.com/someone") == "profile"

    def test_get_youtube_type(self):
        assert get_youtube_type("https://youtube.com/shorts/x") == "shorts"
        assert get_youtube_type("https://youtube.com/live/x") == "live"
        assert get_youtube_type("https://youtube.com/playlist?list=x") == "playlist"
        assert get_youtube_type("https://youtube.com/channel/x") == "channel"
        assert get_youtube_type("https://youtube.com/watch?v=x") == "video"

    def test_extract_ids_missing(self):
        """Helpers return None when nothing matches."""
        assert extract_tiktok_id("https://www.tiktok.com/@alice") is None
        assert extract_instagram_id("https://www.instagram.com/someuser/") is None
        assert extract_youtube_id("https://www.youtube.com/@channel") is None

    def test_to_dict_uses_camel_case(self):
        """to_dict produces the JSON shape consumed by the web app."""
        data = classify("https://www.instagram.com/reel/Cabc123XYZ/").to_dict()

        assert data == {
            "platform": "instagram",
            "contentType": "reel",
            "targetEndpoint": TRANSCRIBE_ENDPOINT,
            "sourceUrl": "https://www.instagram.com/reel/Cabc123XYZ/",
            "extractedId": "Cabc123XYZ",
            "domain": None,
            "isSupported": True,
            "errorMessage": None,
        }

    def test_classification_is_frozen(self):
        """Classifications are immutable values."""
        result = classify("https://www.tiktok.com/@alice/video/1")

        with pytest.raises(AttributeError):
            result.is_supported = False  # type: ignore[misc]
        assert isinstance(result, URLClassification)
