"""Tests for the Story model."""

import dataclasses

import pytest

from hn_duel.tests.conftest import DAY, NOW, make_story


def test_link_prefers_external_url():
    story = make_story(42, url="https://example.com/post")
    assert story.link == "https://example.com/post"
    assert story.discussion_url == "https://news.ycombinator.com/item?id=42"


def test_link_falls_back_to_discussion_page():
    story = make_story(42, url=None)
    assert story.link == "https://news.ycombinator.com/item?id=42"


def test_story_is_immutable():
    story = make_story(1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        story.score = 1000


@pytest.mark.parametrize(
    "age_seconds, expected",
    [
        (5, "just now"),
        (60, "1 minute ago"),
        (59 * 60, "59 minutes ago"),
        (3600, "1 hour ago"),
        (5 * 3600 + 120, "5 hours ago"),
        (DAY, "1 day ago"),
        (3 * DAY + 7200, "3 days ago"),
    ],
)
def test_age_label(age_seconds, expected):
    story = make_story(1, age_days=0)
    assert story.age_label(NOW + age_seconds) == expected


def test_age_never_negative():
    story = make_story(1, age_days=0)
    assert story.age_seconds(NOW - 100) == 0.0
    assert story.age_label(NOW - 100) == "just now"
