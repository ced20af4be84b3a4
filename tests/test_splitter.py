import math

import pandas as pd
import pytest

from enterocast.feature_utils import build_feature_frame
from enterocast.splitter import chronological_split, split_index
from enterocast.vocabulary import CategoryVocabulary

from conftest import make_joined


@pytest.mark.parametrize("n_rows", [2, 5, 8, 13, 101])
def test_split_index_is_floor_of_train_fraction(n_rows):
    assert split_index(n_rows, 0.8) == math.floor(0.8 * n_rows)


def test_split_sizes_and_row_cutover(two_site_joined):
    frame = build_feature_frame(two_site_joined)
    split = chronological_split(frame)

    assert len(split.train) == 6
    assert len(split.test) == 2
    assert split.cutover == 6
    pd.testing.assert_series_equal(
        split.test["date"], frame["date"].iloc[6:].reset_index(drop=True)
    )
    assert split.test["site"].astype(object).tolist() == ["Beach B", "Beach B"]


def test_single_site_split_is_a_calendar_cutover():
    frame = build_feature_frame(make_joined(["Beach A"], n_days=30))
    split = chronological_split(frame)

    assert len(split.train) == math.floor(0.8 * len(frame))
    assert len(split.test) == len(frame) - len(split.train)
    assert split.train["date"].max() <= split.test["date"].min()


def test_partitions_share_the_full_table_vocabulary():
    # 40 days spans two months; the test suffix only sees February
    frame = build_feature_frame(make_joined(["Beach A"], n_days=40, start="2021-01-05"))
    split = chronological_split(frame, categorical_cols=["dow", "month", "season"])

    for col in ["dow", "month", "season"]:
        train_levels = list(split.train[col].cat.categories)
        test_levels = list(split.test[col].cat.categories)
        assert train_levels == test_levels == split.vocabulary.categories(col)
        assert set(split.test[col].astype(object)) <= split.vocabulary.known(col)

    assert "January" in split.vocabulary.categories("month")
    assert (split.test["month"] == "January").sum() == 0


def test_season_keeps_fixed_order_in_vocabulary(two_site_joined):
    split = chronological_split(build_feature_frame(two_site_joined))
    assert split.vocabulary.categories("season") == ["Summer", "Autumn", "Winter", "Spring", "new"]


def test_vocabulary_maps_unseen_levels_to_novel():
    known = pd.DataFrame({"site": ["Beach A", "Beach B"]})
    vocabulary = CategoryVocabulary.from_frame(known, ["site"])
    other = pd.DataFrame({"site": ["Beach B", "Beach Z"]})

    assert vocabulary.novel_counts(other) == {"site": 1}
    applied = vocabulary.apply(other)
    assert applied["site"].astype(object).tolist() == ["Beach B", "new"]
    assert list(applied["site"].cat.categories) == ["Beach A", "Beach B", "new"]


def test_vocabulary_stores_integer_site_codes_as_text():
    vocabulary = CategoryVocabulary.from_frame(pd.DataFrame({"site": [102, 101, 102]}), ["site"])
    assert vocabulary.categories("site") == ["101", "102", "new"]

    applied = vocabulary.apply(pd.DataFrame({"site": [101, 999]}))
    assert applied["site"].astype(object).tolist() == ["101", "new"]
    assert vocabulary.novel_counts(pd.DataFrame({"site": [101, 999]})) == {"site": 1}


def test_split_rejects_tables_too_small_to_partition(two_site_joined):
    frame = build_feature_frame(two_site_joined).iloc[:1]
    with pytest.raises(ValueError, match="non-empty"):
        chronological_split(frame)


def test_split_rejects_invalid_fraction(two_site_joined):
    frame = build_feature_frame(two_site_joined)
    with pytest.raises(ValueError, match="train_fraction"):
        chronological_split(frame, train_fraction=1.2)
