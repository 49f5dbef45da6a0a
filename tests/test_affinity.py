from __future__ import annotations

import pytest

from ovirt_actuator.api.model import AffinityGroup
from ovirt_actuator.errors import ConfigurationError, RemoteCallError, XMLTagMismatchError
from ovirt_actuator.vm.affinity import AffinityGroupBinder


@pytest.fixture
def groups(session):
    session.affinity_groups["cluster-1"] = [
        AffinityGroup(id="g1", name="spread"),
        AffinityGroup(id="g2", name="pack"),
    ]
    return session.affinity_groups["cluster-1"]


class TestAffinityGroupBinder:
    def test_adds_vm_to_each_named_group(self, session, groups):
        AffinityGroupBinder(session).bind("cluster-1", "vm-1", "worker-0", ["spread", "pack"])
        assert session.affinity_members == {"g1": ["vm-1"], "g2": ["vm-1"]}

    def test_no_names_makes_no_calls(self, session, groups):
        AffinityGroupBinder(session).bind("cluster-1", "vm-1", "worker-0", [])
        assert session.calls == []

    def test_unknown_group_is_configuration_error(self, session, groups):
        with pytest.raises(ConfigurationError, match="missing.*cluster-1"):
            AffinityGroupBinder(session).bind("cluster-1", "vm-1", "worker-0", ["spread", "missing"])
        assert session.affinity_members == {}

    def test_known_malformed_reply_is_tolerated(self, session, groups):
        session.affinity_errors["g1"] = XMLTagMismatchError(actual="action", expected="vm")
        AffinityGroupBinder(session).bind("cluster-1", "vm-1", "worker-0", ["spread", "pack"])
        assert session.affinity_members == {"g1": ["vm-1"], "g2": ["vm-1"]}

    @pytest.mark.parametrize(
        "error",
        [
            XMLTagMismatchError(actual="fault", expected="vm"),
            XMLTagMismatchError(actual="action", expected="group"),
            RuntimeError("permission denied"),
        ],
    )
    def test_other_errors_are_fatal(self, session, groups, error):
        session.affinity_errors["g1"] = error
        with pytest.raises(RemoteCallError, match="spread"):
            AffinityGroupBinder(session).bind("cluster-1", "vm-1", "worker-0", ["spread"])
