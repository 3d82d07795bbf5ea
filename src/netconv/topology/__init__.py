from netconv.topology.topology import Link, Topology

__all__ = ["Link", "Topology"]
