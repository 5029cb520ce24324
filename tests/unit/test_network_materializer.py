"""
Unit tests for turning enrollment records into network nodes.
"""

from conftest import directory, rec

from enrollment_dashboard.services.network_materializer import (
    infer_display_name,
    materialize_nodes,
    virtual_node_id,
)
from enrollment_dashboard.services.network_types import NodeKind


class TestVirtualIds:
    def test_deterministic_per_code(self):
        assert virtual_node_id("07") == -1007
        assert virtual_node_id("07") == virtual_node_id("7")

    def test_never_collides_with_stored_ids(self):
        assert virtual_node_id("00") < 0
        assert virtual_node_id("34") < 0


class TestInferDisplayName:
    def test_prefers_name(self):
        assert infer_display_name(1, "  Ana  ", "01", None) == "Ana"

    def test_cluster_label_for_own_code(self):
        assert infer_display_name(1, None, "05", "01") == "Cluster 05"

    def test_referrer_code_fallback(self):
        assert infer_display_name(8, "", None, "03") == "Enrollment 8 (03)"

    def test_generic_fallback(self):
        assert infer_display_name(8, None, None, None) == "Enrollment 8"


class TestMaterializeNodes:
    def test_one_node_per_record_plus_virtual_for_unclaimed(self):
        nodes = materialize_nodes(
            [rec(1, kind="recruiter", own_code="01"), rec(2, kind="lead", parent_code="01")],
            directory("01", "02"),
        )
        assert [n.id for n in nodes] == [1, 2, -1002]
        virtual = nodes[-1]
        assert virtual.is_virtual
        assert virtual.kind is NodeKind.RECRUITER
        assert virtual.code == "02"
        assert virtual.level == 0
        assert virtual.referral_url == "https://example.test/?source=02"

    def test_real_code_suppresses_virtual(self):
        nodes = materialize_nodes([rec(4, kind="recruiter", own_code="7")], directory("07"))
        assert len(nodes) == 1
        assert nodes[0].code == "07"
        assert not any(n.is_virtual for n in nodes)

    def test_virtual_display_names(self):
        nodes = materialize_nodes([], directory("03", "07", names={"07": "Cely"}))
        names = {n.code: n.display_name for n in nodes}
        assert names == {"03": "Cluster 03", "07": "Cely (Cluster 07)"}

    def test_codes_are_normalized(self):
        node = materialize_nodes([rec(1, kind="lead", parent_code="REF 3")], [])[0]
        assert node.parent_code == "03"
        assert node.code is None

    def test_code_presence_forces_recruiter(self):
        node = materialize_nodes([rec(1, kind="lead", own_code="12")], [])[0]
        assert node.kind is NodeKind.RECRUITER
        assert node.code == "12"

    def test_non_numeric_codes_mean_no_code(self):
        node = materialize_nodes([rec(1, kind="recruiter", own_code="abc", parent_code="xyz")], [])[0]
        assert node.kind is NodeKind.RECRUITER
        assert node.code is None
        assert node.parent_code is None
        assert node.display_name == "Enrollment 1 (xyz)"

    def test_name_match_adopts_directory_code(self):
        nodes = materialize_nodes([rec(6, kind="lead", name="Cely")], directory("07", names={"07": "Cely"}))
        assert nodes[0].code == "07"
        assert nodes[0].kind is NodeKind.RECRUITER
        assert len(nodes) == 1

    def test_leads_carry_no_code(self):
        node = materialize_nodes([rec(2, kind="lead", parent_code="01")], [])[0]
        assert node.kind is NodeKind.LEAD
        assert node.code is None
        assert node.referral_url is None

    def test_inputs_untouched(self):
        records = [rec(1, kind="recruiter", own_code="1")]
        recruiters = directory("01", "02")
        materialize_nodes(records, recruiters)
        assert records[0].own_code == "1"
        assert len(recruiters) == 2
