from __future__ import annotations

import pytest

from mpfeed.services.urls import (
    FALLBACK,
    LONG,
    SHORT,
    TEMPORARY,
    UnrecognizedUrlError,
    classify_url,
    normalize_url,
)

MP_ROOT = "https://mp.weixin.qq.com"
MP_ARTICLE_ROOT = MP_ROOT + "/s"

SHORT_URL = MP_ARTICLE_ROOT + "/-rwvHhqYbKGCVFeXRNknYQ"
LONG_URL_SHORTENED = (
    MP_ARTICLE_ROOT
    + "?__biz=MzA4MjQxNjQzMA=="
    + "&mid=2768628484"
    + "&idx=1"
    + "&sn=93dcc54ce807f7793739ee2fd2377056"
)
LONG_URL = (
    LONG_URL_SHORTENED
    + "&chksm=bf774d458800c453c94cae866093680e6cac6a1f02cab7e82683f82f35f7f487e2daa1dcde20"
    + "&scene=75"
    + "#wechat_redirect"
)
TEMPORARY_URL_SHORTENED = (
    MP_ARTICLE_ROOT
    + "?src=11"
    + "&timestamp=1620536401"
    + "&ver=3057"
    + "&signature=vCDI8FQcumnNGv4ScvFP-swQRlirdQSqTfjS8m-oFzgHMkqlNM3ljzjSevcjXLC-z-n0RzzMkNt-lwKMUaskfaqFFrpYZNq4ZCKkFFGj8L*KvH780aEUBJFvWTGmMGLC"
)
TEMPORARY_URL = TEMPORARY_URL_SHORTENED + "&new=1#foo"
SOMETHING_ELSE = MP_ROOT + "/something/else?__biz=foo&mid=bar&idx=baz&sn=qux"
NOT_WECHAT_MP = "https://im.not.wechat.mp/and/an/error/is/expected"


def test_short_form_drops_query_and_fragment():
    assert normalize_url(SHORT_URL + "?foo=bar#baz") == SHORT_URL


def test_long_form_keeps_identifying_params():
    assert normalize_url(LONG_URL) == LONG_URL_SHORTENED


def test_long_form_keeps_original_param_order():
    url = MP_ARTICLE_ROOT + "?scene=1&sn=d&idx=c&chksm=x&mid=b&__biz=a#frag"
    assert normalize_url(url) == MP_ARTICLE_ROOT + "?sn=d&idx=c&mid=b&__biz=a"


def test_temporary_form_keeps_its_params():
    assert normalize_url(TEMPORARY_URL) == TEMPORARY_URL_SHORTENED


def test_fallback_forces_https_and_strips_fragment():
    assert normalize_url((SOMETHING_ELSE + "#foo").replace("https://", "http://")) == SOMETHING_ELSE


def test_article_path_with_partial_params_falls_back():
    url = "http://mp.weixin.qq.com/s?__biz=foo&mid=bar#x"
    assert classify_url(url).shape == FALLBACK
    assert normalize_url(url) == "https://mp.weixin.qq.com/s?__biz=foo&mid=bar"


def test_scheme_kept_outside_fallback():
    assert normalize_url(SHORT_URL.replace("https://", "http://")) == SHORT_URL.replace("https://", "http://")


def test_classify_reports_shape():
    assert classify_url(SHORT_URL).shape == SHORT
    assert classify_url(LONG_URL).shape == LONG
    assert classify_url(TEMPORARY_URL).shape == TEMPORARY
    assert classify_url(SOMETHING_ELSE).shape == FALLBACK


def test_unrecognized_host_raises():
    with pytest.raises(UnrecognizedUrlError):
        normalize_url(NOT_WECHAT_MP)
    with pytest.raises(ValueError):
        normalize_url(NOT_WECHAT_MP + "/s/abc")


def test_unrecognized_host_passthrough_when_bypassed():
    assert normalize_url(NOT_WECHAT_MP, True) == NOT_WECHAT_MP
    assert normalize_url(NOT_WECHAT_MP + "#keep", bypass_host_check=True) == NOT_WECHAT_MP + "#keep"


def test_normalize_is_stable():
    for url in (SHORT_URL, LONG_URL, TEMPORARY_URL, SOMETHING_ELSE):
        canonical = normalize_url(url)
        assert normalize_url(canonical) == canonical
        assert "#" not in canonical


def test_scheme_case_kept_outside_fallback():
    assert normalize_url("HTTPS://mp.weixin.qq.com/s/abc?x=1#y") == "HTTPS://mp.weixin.qq.com/s/abc"
    assert normalize_url("HTTP://mp.weixin.qq.com/other#y") == "https://mp.weixin.qq.com/other"


def test_empty_identifying_values_do_not_match_long_form():
    url = MP_ARTICLE_ROOT + "?__biz=&mid=&idx=&sn=#x"
    assert classify_url(url).shape == FALLBACK
    assert normalize_url(url) == MP_ARTICLE_ROOT + "?__biz=&mid=&idx=&sn="

    temporary = MP_ARTICLE_ROOT + "?src=11&timestamp=&ver=3057&signature=abc"
    assert classify_url(temporary).shape == FALLBACK
