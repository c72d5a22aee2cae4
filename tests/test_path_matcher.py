"""Tests for Ant-style path pattern matching."""

from __future__ import annotations

import pytest

from respath.matching import PathMatcher, PatternComparator

matcher = PathMatcher()


@pytest.mark.parametrize(
    "pattern, path",
    [
        ("test", "test"),
        ("/test", "/test"),
        ("/test/jpetstore", "/test/jpetstore"),
        ("/test/", "/test/"),
    ],
)
def test_literal_patterns_match_themselves(pattern: str, path: str):
    assert matcher.match(pattern, path)


@pytest.mark.parametrize(
    "pattern, path",
    [
        ("test", "/test"),
        ("/test", "test"),
        ("/test", "/test/"),
        ("/test/", "/test"),
        ("/test/jpetstore", "/test/jpetstore/other"),
        ("test", "tes"),
    ],
)
def test_literal_patterns_respect_separators(pattern: str, path: str):
    assert not matcher.match(pattern, path)


@pytest.mark.parametrize(
    "path, expected",
    [
        ("", True),
        ("a", False),
        ("/", False),
    ],
)
def test_empty_pattern_matches_only_empty_path(path: str, expected: bool):
    assert matcher.match("", path) is expected


def test_question_mark_matches_one_character():
    assert matcher.match("t?st", "test")
    assert matcher.match("com/t?st.jsp", "com/tast.jsp")
    assert matcher.match("??st", "test")
    assert not matcher.match("tes?", "tes")
    assert not matcher.match("tes?", "testt")


def test_star_matches_within_one_segment():
    assert matcher.match("com/*.jsp", "com/test.jsp")
    assert not matcher.match("com/*.jsp", "com/sub/test.jsp")
    assert matcher.match("*", "test")
    assert matcher.match("test*", "test")
    assert matcher.match("test*", "testTest")
    assert matcher.match("*test*", "AnothertestTest")
    assert not matcher.match("test*", "tst")
    assert not matcher.match("/*.txt", "/x/y.txt")


def test_double_star_matches_any_number_of_segments():
    assert matcher.match("a/**/b.txt", "a/x/y/b.txt")
    assert matcher.match("a/**/b.txt", "a/b.txt")
    assert not matcher.match("a/**/b.txt", "a/b/c.java")
    assert matcher.match("/**", "/testing/testing")
    assert matcher.match("/*/**", "/testing/testing")
    assert matcher.match("/bla/**/bla", "/bla/testing/testing/bla/bla")
    assert matcher.match("/**/test", "/bla/bla/test")
    assert matcher.match("/bla*bla/test", "/blaXXXbla/test")
    assert not matcher.match("/bla*bla/test", "/blaXXXbl/test")
    assert not matcher.match("/x/x/**/bla", "/x/x/x/")


def test_runs_between_double_stars_are_placed():
    assert matcher.match("/**/bla/**/bla", "/x/bla/y/z/bla")
    assert matcher.match("/**/**/bla", "/x/y/bla")
    assert matcher.match(
        "/foo/bar/**/*.jsp/**/x", "/foo/bar/baz/a.jsp/b/c/x"
    )
    assert not matcher.match("/**/bla/**/bla", "/x/bla/y")


def test_trailing_star_matches_path_with_trailing_separator():
    assert matcher.match("/x/*", "/x/")
    assert not matcher.match("/x/*", "/x")


def test_match_start_prunes_impossible_prefixes():
    assert matcher.match_start("/root/src/**/*.py", "/root/src/")
    assert matcher.match_start("/root/src/**/*.py", "/root/src/pkg/deep/")
    assert not matcher.match_start("/root/src/**/*.py", "/root/build/")
    assert not matcher.match_start("/root/*.txt", "/root/sub/")
    assert matcher.match_start("/root/*/*.txt", "/root/sub/")
    assert matcher.match_start("/root/**", "/root/anything/at/all/")


def test_is_pattern():
    assert matcher.is_pattern("/app/*.txt")
    assert matcher.is_pattern("/app/t?st")
    assert matcher.is_pattern("/app/**/x")
    assert not matcher.is_pattern("/app/plain.txt")
    assert not matcher.is_pattern("/users/{id}")


def test_extract_variables():
    assert matcher.extract_variables("/users/{id}", "/users/42") == {"id": "42"}
    assert matcher.extract_variables("/hotels/{hotel}/rooms/{room}", "/hotels/1/rooms/2") == {
        "hotel": "1",
        "room": "2",
    }
    assert matcher.extract_variables("/files/{name}.{ext}", "/files/notes.txt") == {
        "name": "notes",
        "ext": "txt",
    }


def test_extract_variables_with_custom_regex():
    result = matcher.extract_variables(
        "/libs/{name:[a-z-]+}-{version}.jar", "/libs/spring-web-5.jar"
    )
    assert result == {"name": "spring-web", "version": "5"}
    assert matcher.match("/ids/{id:\\d+}", "/ids/123")
    assert not matcher.match("/ids/{id:\\d+}", "/ids/abc")


def test_extract_variables_across_double_star():
    assert matcher.extract_variables("/**/{name}.txt", "/a/b/readme.txt") == {"name": "readme"}


def test_extract_variables_requires_match():
    with pytest.raises(ValueError, match="not a match"):
        matcher.extract_variables("/users/{id}", "/groups/42")


def test_capturing_groups_in_variable_regex_are_rejected():
    with pytest.raises(ValueError, match="capturing groups"):
        matcher.match("/ids/{id:(\\d+)}", "/ids/1")


def test_regex_characters_in_literals_are_escaped():
    assert matcher.match("/a+b/*.txt", "/a+b/x.txt")
    assert not matcher.match("/a.b", "/axb")


def test_extract_path_within_pattern():
    assert matcher.extract_path_within_pattern("/docs/commit.html", "/docs/commit.html") == ""
    assert matcher.extract_path_within_pattern("/docs/*", "/docs/cvs/commit") == "cvs/commit"
    assert (
        matcher.extract_path_within_pattern("/docs/**/*.html", "/docs/cvs/commit.html")
        == "cvs/commit.html"
    )
    assert (
        matcher.extract_path_within_pattern("*.html", "/docs/cvs/commit.html")
        == "/docs/cvs/commit.html"
    )


@pytest.mark.parametrize(
    "pattern1, pattern2, expected",
    [
        (None, None, ""),
        ("/hotels", None, "/hotels"),
        (None, "/hotels", "/hotels"),
        ("/hotels", "/bookings", "/hotels/bookings"),
        ("/hotels", "bookings", "/hotels/bookings"),
        ("/hotels/*", "/bookings", "/hotels/bookings"),
        ("/hotels/**", "/bookings", "/hotels/**/bookings"),
        ("/hotels/**", "{hotel}", "/hotels/**/{hotel}"),
        ("/hotels/*", "{hotel}", "/hotels/{hotel}"),
        ("/{foo}", "/bar", "/{foo}/bar"),
        ("/*.html", "/hotels.html", "/hotels.html"),
        ("/*.html", "/hotels", "/hotels.html"),
        ("/*.html", "/*.html", "/*.html"),
    ],
)
def test_combine(pattern1: str | None, pattern2: str | None, expected: str):
    assert matcher.combine(pattern1, pattern2) == expected


def test_combine_rejects_conflicting_extensions():
    with pytest.raises(ValueError, match="Cannot combine"):
        matcher.combine("/*.html", "/*.txt")


def test_comparator_puts_exact_match_first():
    ranked = matcher.sort_patterns(["/hotels/*", "/hotels/{id}", "/hotels/1"], "/hotels/1")
    assert ranked == ["/hotels/1", "/hotels/{id}", "/hotels/*"]


def test_comparator_ordering_rules():
    compare = matcher.pattern_comparator("/hotels/new")
    assert compare("/hotels/new", "/hotels/new") == 0
    assert compare("/hotels/new", "/hotels/*") < 0
    assert compare("/hotels/*", "/hotels/new") > 0
    # Fewer wildcards plus variables first.
    assert compare("/hotels/{hotel}", "/hotels/**") < 0
    assert compare("/hotels/*/**", "/hotels/{hotel}") > 0
    # Longer pattern first.
    assert compare("/hotels/new/**", "/hotels/**") < 0
    # A trailing `.*` does not count as a wildcard.
    assert compare("/hotels/new.*", "/hotels/{hotel}") < 0


def test_comparator_sorts_none_last():
    comparator = PatternComparator("/x")
    ranked = sorted([None, "/x/*", None, "/x"], key=comparator.key())
    assert ranked == ["/x", "/x/*", None, None]


def test_custom_separator():
    dotted = PathMatcher(".")
    assert dotted.match("com.*.Service", "com.example.Service")
    assert dotted.match("com.**.Service", "com.a.b.Service")
    assert not dotted.match("com.*.Service", "com.a.b.Service")
    assert dotted.extract_variables("com.{pkg}.Service", "com.acme.Service") == {"pkg": "acme"}


def test_empty_separator_rejected():
    with pytest.raises(ValueError):
        PathMatcher("")
