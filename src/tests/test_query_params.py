from __future__ import annotations

from lynx_tui.datamodels import ReadState, SearchParams, SortBy
from lynx_tui.query_params import decode, encode, to_query_string


def test_encode_omits_tag_when_no_filter():
    query = encode(SearchParams(search_text="", tag_id=None))
    assert query == {"s": ""}
    assert "t" not in query


def test_encode_only_writes_shareable_fields():
    params = SearchParams(
        search_text="rust",
        tag_id="abc123",
        read_state=ReadState.UNREAD,
        sort_by=SortBy.ARTICLE_DATE,
    )
    assert encode(params) == {"s": "rust", "t": "abc123"}


def test_round_trip_recovers_search_and_tag():
    params = SearchParams(search_text="go & rust?", tag_id="tag_1")
    assert decode(encode(params)) == {"search_text": "go & rust?", "tag_id": "tag_1"}
    assert decode(to_query_string(params)) == {"search_text": "go & rust?", "tag_id": "tag_1"}


def test_decode_missing_keys():
    assert decode({}) == {"search_text": "", "tag_id": None}
    assert decode(None) == {"search_text": "", "tag_id": None}
    assert decode("") == {"search_text": "", "tag_id": None}


def test_decode_empty_tag_means_no_filter():
    assert decode("s=&t=") == {"search_text": "", "tag_id": None}


def test_decode_query_string_with_question_mark():
    assert decode("?s=hello+world&t=x1") == {"search_text": "hello world", "tag_id": "x1"}


def test_decode_multi_valued_mapping_takes_first():
    assert decode({"s": ["one", "two"], "t": []}) == {"search_text": "one", "tag_id": None}


def test_decode_malformed_input_does_not_raise():
    assert decode("%%%&&=t&s") == {"search_text": "", "tag_id": None}
    assert decode({"s": 42})["search_text"] == "42"
