from thinkly.memory.vectors import build_vector, extract_terms, similarity


def test_extract_terms_drops_short_words_stop_words_and_punctuation() -> None:
    terms = extract_terms("Should I move to Berlin, or stay with this job?!")
    assert terms == ["move", "berlin", "stay"]


def test_build_vector_counts_repeated_terms_case_insensitively() -> None:
    vector = build_vector("Career growth. career, CAREER; growth")
    assert vector == {"career": 3, "growth": 2}


def test_build_vector_is_order_independent() -> None:
    assert build_vector("remote work budget tight") == build_vector("tight budget work remote")


def test_build_vector_is_stable_under_retokenization() -> None:
    text = "We'd rather keep the savings buffer: savings matter more than speed."
    assert build_vector(" ".join(extract_terms(text))) == build_vector(text)


def test_build_vector_of_blank_text_is_empty() -> None:
    assert build_vector("") == {}
    assert build_vector("a an to of it") == {}


def test_similarity_is_dot_product_over_shared_terms() -> None:
    assert similarity({"berlin": 2, "career": 1}, {"berlin": 3, "money": 5}) == 6
    assert similarity({"berlin": 1}, {"berlin": 1, "career": 1}) == similarity(
        {"berlin": 1, "career": 1}, {"berlin": 1}
    )


def test_similarity_without_shared_terms_is_zero() -> None:
    assert similarity({"berlin": 4}, {"lisbon": 4}) == 0
    assert similarity({}, {"lisbon": 1}) == 0
