"""
Unit tests for tag resolvers
"""

import pytest

from bbs.graphql.resolvers.tags import resolve_tag_tree, resolve_tags

MODULE = "bbs.graphql.resolvers.tags"


class TestResolveTags:
    @pytest.mark.asyncio
    async def test_main_and_recommended(
        self, mock_info, db_session, make_result, patched_resolver
    ):
        db_session.execute.side_effect = [
            make_result(scalars=["tech", "life"]),
            make_result(scalars=["python"]),
        ]

        with patched_resolver(MODULE, db_session, None):
            tags = await resolve_tags(mock_info)

        assert tags.main_tags == ["tech", "life"]
        assert tags.recommended == ["python"]


class TestResolveTagTree:
    @pytest.mark.asyncio
    async def test_groups_sub_tags_under_main_tags(
        self, mock_info, db_session, make_result, patched_resolver
    ):
        db_session.execute.side_effect = [
            make_result(scalars=["tech", "life"]),
            make_result(rows=[("tech", "rust"), ("tech", "python"), ("life", "food")]),
        ]

        with patched_resolver(MODULE, db_session, None):
            tree = await resolve_tag_tree(mock_info)

        assert [(node.main_tag, node.sub_tags) for node in tree] == [
            ("tech", ["python", "rust"]),
            ("life", ["food"]),
        ]

    @pytest.mark.asyncio
    async def test_query_filters_sub_tags(
        self, mock_info, db_session, make_result, patched_resolver
    ):
        db_session.execute.side_effect = [
            make_result(scalars=["tech", "life"]),
            make_result(rows=[("tech", "rust"), ("tech", "python"), ("life", "food")]),
        ]

        with patched_resolver(MODULE, db_session, None):
            tree = await resolve_tag_tree(mock_info, "PY")

        assert [(node.main_tag, node.sub_tags) for node in tree] == [("tech", ["python"])]
