"""Tests for the metadata extraction state machine."""

import pytest

from quire_pkg.extractor import (
    Event,
    EventKind,
    MetadataExtractor,
    State,
    build_tree,
    extract,
    iter_events,
    looks_like_metadata,
)
from quire_pkg.readers import MarkdownReader


@pytest.fixture
def reader():
    return MarkdownReader()


def paragraph_start():
    return Event(EventKind.START, {'type': 'paragraph'})


def paragraph_end():
    return Event(EventKind.END, {'type': 'paragraph'})


class TestMarkdownExtraction:
    """End-to-end extraction through the markdown reader."""

    def test_title_capture(self, reader):
        body, metadata = reader.convert("# Foo\nbar\nbaz")

        assert metadata == {'title': 'Foo'}
        assert '<h1' not in body
        assert body == reader.render_markdown("bar\nbaz")
        assert body.count('<p>') == 1
        assert 'bar\nbaz' in body

    def test_metadata_block_capture(self, reader):
        body, metadata = reader.convert("# Foo\n\nBar: baz:quux\nFoo bar: qux baz\n\nfoo: bar")

        assert metadata == {'title': 'Foo', 'bar': 'baz:quux', 'foo bar': 'qux baz'}
        assert body == reader.render_markdown("foo: bar")

    def test_partial_match_is_flushed_verbatim(self, reader):
        text = "\n\n\nBar: baz:quux\nFoo bar: qux baz  \nlol\n\nfoo: bar"
        body, metadata = reader.convert(text)

        assert metadata == {}
        assert body == reader.render_markdown(text)
        assert '<br />' in body
        assert 'lol' in body
        assert 'foo: bar' in body

    @pytest.mark.parametrize('text', [
        "Just a paragraph.\n\nAnother one.",
        "- a list\n- of items\n",
        "```\ncode: block\n```\n",
        "Some *emphasis*: here\n",
        "Note. This: is prose\n",
        "> quoted: text\n",
        "| a | b |\n|---|---|\n| 1 | 2 |\n",
        "---\n\nA rule above, not a front matter block.\n",
    ])
    def test_lossless_fallback(self, reader, text):
        body, metadata = reader.convert(text)

        assert metadata == {}
        assert body == reader.render_markdown(text)

    def test_heading_after_body_is_not_a_title(self, reader):
        text = "Intro paragraph.\n\n# Late heading\n"
        body, metadata = reader.convert(text)

        assert 'title' not in metadata
        assert '<h1>Late heading</h1>' in body
        assert body == reader.render_markdown(text)

    def test_metadata_paragraph_at_end_of_document(self, reader):
        body, metadata = reader.convert("# T\n\nkey: value")

        assert metadata == {'title': 'T', 'key': 'value'}
        assert body == ''

    def test_metadata_without_title(self, reader):
        body, metadata = reader.convert("Created: 2016-01-01T00:00:00Z\n\nBody.\n")

        assert metadata == {'created': '2016-01-01T00:00:00Z'}
        assert body == reader.render_markdown("Body.\n")

    def test_title_only(self, reader):
        body, metadata = reader.convert("# Only a title\n")

        assert metadata == {'title': 'Only a title'}
        assert body == ''

    def test_title_with_inline_markup(self, reader):
        body, metadata = reader.convert("# Foo *bar*\n\nText.\n")

        assert metadata['title'] == 'Foo bar'
        assert '<em>' not in body

    def test_entities_are_decoded(self, reader):
        """Title and values hold plain text; templates escape them again."""
        body, metadata = reader.convert("# Tom &amp; Jerry\n\nStudio: MGM &amp; Co\n\nText.\n")

        assert metadata == {'title': 'Tom & Jerry', 'studio': 'MGM & Co'}
        assert body == reader.render_markdown("Text.\n")

    def test_inline_markup_in_metadata_paragraph_aborts(self, reader):
        body, metadata = reader.convert("# T\n\nkey: *value*\n")

        assert metadata == {'title': 'T'}
        assert body == reader.render_markdown("key: *value*\n")

    def test_metadata_block_overrides_heading_title(self, reader):
        _, metadata = reader.convert("# Heading\n\nTitle: Explicit\n")

        assert metadata['title'] == 'Explicit'

    def test_last_occurrence_wins(self, reader):
        _, metadata = reader.convert("# T\n\nKey: one\nkey: two\n")

        assert metadata['key'] == 'two'

    def test_second_paragraph_is_never_metadata(self, reader):
        body, metadata = reader.convert("# T\n\nProse first.\n\nkey: value\n")

        assert metadata == {'title': 'T'}
        assert 'key: value' in body

    def test_leading_list_aborts_extraction(self, reader):
        text = "- key: value\n\n# Heading\n"
        body, metadata = reader.convert(text)

        assert metadata == {}
        assert body == reader.render_markdown(text)


class TestMetadataExtractor:
    """State machine behaviour on hand-built event streams."""

    def test_states_through_title_and_metadata(self):
        extractor = MetadataExtractor()
        assert extractor.state is State.BEFORE_TITLE

        extractor.feed(Event(EventKind.START, {'type': 'heading', 'attrs': {'level': 1}}))
        assert extractor.state is State.INSIDE_TITLE

        extractor.feed(Event(EventKind.TEXT, text='Foo'))
        extractor.feed(Event(EventKind.END, {'type': 'heading', 'attrs': {'level': 1}}))
        assert extractor.state is State.BEFORE_METADATA

        extractor.feed(paragraph_start())
        assert extractor.state is State.INSIDE_METADATA

        extractor.feed(Event(EventKind.TEXT, text='a: b'))
        extractor.feed(paragraph_end())
        assert extractor.state is State.INSIDE_BODY
        assert extractor.metadata == {'title': 'Foo', 'a': 'b'}

    def test_end_of_stream_folds_pending_metadata(self):
        events, metadata = extract([paragraph_start(), Event(EventKind.TEXT, text='a: b')])

        assert events == []
        assert metadata == {'a': 'b'}

    def test_flush_preserves_order(self):
        stream = [
            paragraph_start(),
            Event(EventKind.TEXT, text='a: b'),
            Event(EventKind.SOFT_BREAK),
            Event(EventKind.TEXT, text='not metadata'),
            Event(EventKind.SOFT_BREAK),
            Event(EventKind.TEXT, text='c: d'),
            paragraph_end(),
        ]
        events, metadata = extract(stream)

        assert events == stream
        assert metadata == {}

    def test_body_events_pass_through(self):
        rule = Event(EventKind.LEAF, {'type': 'thematic_break'})
        stream = [rule, paragraph_start(), Event(EventKind.TEXT, text='a: b'), paragraph_end()]
        events, metadata = extract(stream)

        assert events == stream
        assert metadata == {}

    def test_hard_break_is_buffered(self):
        stream = [
            paragraph_start(),
            Event(EventKind.TEXT, text='a: b'),
            Event(EventKind.HARD_BREAK),
            Event(EventKind.TEXT, text='c: d'),
            paragraph_end(),
        ]
        events, metadata = extract(stream)

        assert events == []
        assert metadata == {'a': 'b', 'c': 'd'}


class TestEvents:
    """Flattening and rebuilding mistune tokens."""

    def test_adjacent_text_is_merged(self):
        tokens = [{'type': 'paragraph', 'children': [
            {'type': 'text', 'raw': 'a'},
            {'type': 'text', 'raw': 'b'},
        ]}]
        events = list(iter_events(tokens))

        assert [event.kind for event in events] == [EventKind.START, EventKind.TEXT, EventKind.END]
        assert events[1].text == 'ab'

    def test_blank_lines_are_dropped(self):
        tokens = [{'type': 'blank_line'}, {'type': 'thematic_break'}]
        events = list(iter_events(tokens))

        assert len(events) == 1
        assert events[0].kind is EventKind.LEAF

    def test_build_tree_restores_structure(self):
        tokens = [{'type': 'paragraph', 'children': [
            {'type': 'text', 'raw': 'a'},
            {'type': 'softbreak'},
            {'type': 'emphasis', 'children': [{'type': 'text', 'raw': 'b'}]},
        ]}]

        assert build_tree(iter_events(tokens)) == tokens

    def test_build_tree_rejects_unbalanced_stream(self):
        with pytest.raises(ValueError):
            build_tree([paragraph_start()])
        with pytest.raises(ValueError):
            build_tree([paragraph_end()])

    @pytest.mark.parametrize('line,expected', [
        ('key: value', True),
        ('Foo bar: qux baz', True),
        ('created: 2016-01-01T00:00:00Z', True),
        ('lol', False),
        (': value', False),
        (' key: value', False),
        ('Hello. Note: this', False),
    ])
    def test_looks_like_metadata(self, line, expected):
        assert looks_like_metadata(line) is expected
