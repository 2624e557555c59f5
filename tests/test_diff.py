"""Tests for the delta engine."""

from code_warden.diff import SnapshotDelta, compute_delta


class TestComputeDelta:
    def test_identical_bundles_are_all_zero(self, make_bundle):
        bundle = make_bundle(stale_files=2, todos=5, complexity=3, deep_imports=1, circular_chains=0)
        delta = compute_delta(bundle, bundle)
        assert delta == SnapshotDelta(0, 0, 0, 0, 0, 0, 0, 0, 0, 0)

    def test_signed_differences(self, make_bundle):
        previous = make_bundle(stale_files=3, stale_directories=1, todos=10, fixmes=2, any_casts=4)
        current = make_bundle(stale_files=1, stale_directories=2, todos=12, fixmes=2, any_casts=0)
        delta = compute_delta(previous, current)
        assert delta.stale_files_delta == -2
        assert delta.stale_directories_delta == 1
        assert delta.total_todos_delta == 2
        assert delta.total_fixmes_delta == 0
        assert delta.total_any_casts_delta == -4

    def test_antisymmetric(self, make_bundle):
        a = make_bundle(stale_files=1, todos=3, hacks=2, eslint_disables=7, complexity=4)
        b = make_bundle(stale_files=4, todos=1, hacks=5, eslint_disables=2, complexity=9)
        forward = compute_delta(a, b).to_dict()
        backward = compute_delta(b, a).to_dict()
        for key, value in forward.items():
            if value is None:
                assert backward[key] is None
            else:
                assert backward[key] == -value

    def test_optional_absent_on_one_side_is_none(self, make_bundle):
        previous = make_bundle(complexity=5)
        current = make_bundle()
        delta = compute_delta(previous, current)
        assert delta.complexity_findings_delta is None
        assert delta.deep_imports_delta is None
        assert delta.circular_chains_delta is None

    def test_optional_present_on_both_sides(self, make_bundle):
        previous = make_bundle(complexity=5, deep_imports=2, circular_chains=1)
        current = make_bundle(complexity=3, deep_imports=6, circular_chains=1)
        delta = compute_delta(previous, current)
        assert delta.complexity_findings_delta == -2
        assert delta.deep_imports_delta == 4
        assert delta.circular_chains_delta == 0

    def test_to_dict_keeps_none(self, make_bundle):
        delta = compute_delta(make_bundle(), make_bundle())
        data = delta.to_dict()
        assert data["complexity_findings_delta"] is None
        assert data["total_todos_delta"] == 0
