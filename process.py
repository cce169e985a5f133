#!/usr/bin/env python
# coding: utf-8
"""
============================================================
EMAIL CORPUS · COMMUNICATION NETWORK STRUCTURE
============================================================
Purpose: Reconstruct who-talks-to-whom from email headers
         and summarise the network's structure:

  - average shortest-path distance (all-sources BFS)
  - degree distribution
  - Louvain communities + modularity
  - betweenness centrality (Brandes)

The graph is ingested once, frozen, and every analytic reads
the same immutable view. All outputs are JSON / CSV files in
the output directory.
============================================================
"""

import argparse
import json
import os
import sys
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

import networkx as nx
import pandas as pd
from pydantic import ValidationError

from centrality import betweenness
from community_detection import CommunityResult, detect_communities
from degree import degree_histogram
from distance import DistanceResult, average_distance
from extract import EdgeExtractor, iter_messages, reservoir_sample
from graph_store import EmailGraph, FrozenGraph
from settings import ENRON_DOMAIN_PATTERN, AnalysisSettings

# How many members to list per community in communities.json
TOP_MEMBERS_PER_COMMUNITY = 5


# ---------------------------------------------------------------------------
# Main analyzer
# ---------------------------------------------------------------------------

class EmailNetworkAnalyzer:
    """
    End-to-end pipeline:
      1. ingest: read messages, add (sender, recipient) edges
      2. freeze: end of ingestion, read-only graph from here on
      3. compute_distances: average shortest-path length
      4. compute_degrees: degree histogram
      5. compute_communities: Louvain partition
      6. compute_centrality: betweenness
      7. export_results: write JSON / CSV outputs
    """

    def __init__(self, source: str, output_dir: str, settings: Optional[AnalysisSettings] = None):
        self.source = source
        self.output_dir = output_dir
        self.settings = settings or AnalysisSettings()

        self.extractor = EdgeExtractor(self.settings.address)
        self._graph = EmailGraph()

        # ── Populated in later stages ─────────────────────────────────────
        self.G: Optional[FrozenGraph] = None
        self.distance: Optional[DistanceResult] = None
        self.degree_dist: List[Tuple[int, int]] = []
        self.communities: Optional[CommunityResult] = None
        self.centrality: Dict[str, float] = {}

    # ------------------------------------------------------------------
    # Stage 1–2: ingestion
    # ------------------------------------------------------------------

    def ingest(self):
        print("⚙️  Reading messages …")
        s = self.settings
        messages = iter_messages(self.source, csv_chunk_size=s.csv_chunk_size, progress=s.progress)
        if s.sample_size:
            messages = reservoir_sample(messages, s.sample_size, seed=s.seed)
            print(f"   sampled {len(messages):,} messages (seed={s.seed})")

        self._graph.add_edges(self.extractor.pairs(messages))
        print(
            f"   {self.extractor.total_ok:,} usable messages from "
            f"{self.extractor.total_raw:,} read, {self.extractor.total_pairs:,} pairs"
        )

    def freeze(self):
        self.G = self._graph.freeze()
        print(f"📊 Graph frozen: {self.G.vertex_count():,} nodes, {self.G.edge_count():,} edges")

    # ------------------------------------------------------------------
    # Stage 3–6: analytics
    # ------------------------------------------------------------------

    def compute_distances(self):
        print("📏 Average shortest-path distance …")
        s = self.settings
        self.distance = average_distance(
            self.G, workers=s.workers, chunk_size=s.chunk_size, progress=s.progress
        )
        if self.distance.applicable:
            print(f"   {self.distance.value:.4f} hops over {self.distance.pair_count:,} reachable pairs")
        else:
            print(f"   not applicable: {self.distance.reason}")

    def compute_degrees(self):
        print("📈 Degree distribution …")
        self.degree_dist = degree_histogram(self.G)
        print(f"   {len(self.degree_dist)} distinct degrees")

    def compute_communities(self):
        print("🏘️  Louvain communities …")
        s = self.settings
        self.communities = detect_communities(self.G, epsilon=s.epsilon, max_passes=s.max_passes)
        print(
            f"   {self.communities.community_count} communities, "
            f"modularity {self.communities.modularity:.4f} ({self.communities.levels} levels)"
        )

    def compute_centrality(self):
        print("📐 Betweenness centrality …")
        s = self.settings
        self.centrality = betweenness(
            self.G,
            workers=s.workers,
            chunk_size=s.chunk_size,
            normalized=s.normalize_betweenness,
            progress=s.progress,
        )

    # ------------------------------------------------------------------
    # Stage 7: export
    # ------------------------------------------------------------------

    def _community_summary(self) -> List[dict]:
        assignment = self.communities.assignment
        comm_members: Dict[int, List[str]] = defaultdict(list)
        for n, cid in assignment.items():
            comm_members[cid].append(n)

        summary = []
        for cid, ms in sorted(comm_members.items(), key=lambda x: (-len(x[1]), x[0])):
            top_members = sorted(ms, key=lambda n: -self.centrality.get(n, 0.0))[:TOP_MEMBERS_PER_COMMUNITY]
            summary.append({
                "community_id": cid,
                "size": len(ms),
                "top_members": top_members,
                "external_edges": sum(
                    1 for n in ms
                    for nb in self.G.neighbors(n)
                    if assignment.get(nb) != cid
                ),
            })
        return summary

    def stats(self) -> dict:
        nxg = self.G.to_networkx()
        components = list(nx.connected_components(nxg)) if len(nxg) else []
        applicable = self.distance.applicable
        return {
            "total_messages": self.extractor.total_raw,
            "usable_messages": self.extractor.total_ok,
            "total_nodes": self.G.vertex_count(),
            "total_edges": self.G.edge_count(),
            "density": round(nx.density(nxg), 6) if len(nxg) > 1 else 0.0,
            "connected_components": len(components),
            "lcc_nodes": max((len(c) for c in components), default=0),
            "average_distance": self.distance.value if applicable else None,
            "average_distance_note": (
                "unreachable pairs excluded" if applicable else self.distance.reason
            ),
            "n_communities": self.communities.community_count,
            "modularity": round(self.communities.modularity, 6),
            "louvain_levels": self.communities.levels,
        }

    def export_results(self):
        print("💾 Exporting …")
        out = self.output_dir
        os.makedirs(out, exist_ok=True)
        sep = (",", ":")

        stats = self.stats()
        degree_dist_data = [{"degree": d, "count": c} for d, c in self.degree_dist]

        with open(f"{out}/stats.json", "w") as f:
            json.dump(stats, f, indent=2)

        with open(f"{out}/degree_dist.json", "w") as f:
            json.dump(degree_dist_data, f, separators=sep)

        with open(f"{out}/communities.json", "w") as f:
            json.dump(self._community_summary(), f, separators=sep)

        df_nodes = pd.DataFrame({
            "id": list(self.G.vertices),
            "degree": [self.G.degree(n) for n in self.G.vertices],
            "community": [self.communities.assignment[n] for n in self.G.vertices],
            "betweenness": [self.centrality.get(n, 0.0) for n in self.G.vertices],
        })
        df_nodes.sort_values(["betweenness", "id"], ascending=[False, True]).to_csv(
            f"{out}/centrality.csv", index=False
        )

        print(f"\n✅  Done! Files in: {out}/")
        _col_w = max(len(k) for k in stats) + 2
        for k, v in stats.items():
            print(f"   {k:<{_col_w}} {v}")

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    def run(self):
        """Execute the full pipeline."""
        self.ingest()
        self.freeze()
        self.compute_distances()
        self.compute_degrees()
        self.compute_communities()
        self.compute_centrality()
        self.export_results()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Communication network structure of an email corpus."
    )
    p.add_argument("source", help="emails.csv, a .tar.gz archive, or a maildir directory")
    p.add_argument("-o", "--output-dir", default="sna_output")
    p.add_argument("--workers", type=int, help="processes for BFS work (env EMAILNET_WORKERS)")
    p.add_argument("--chunk-size", type=int, help="BFS sources per work unit")
    p.add_argument("--sample-size", type=int, help="analyze a random sample of N messages")
    p.add_argument("--seed", type=int)
    p.add_argument("--epsilon", type=float, help="minimum modularity gain per Louvain level")
    p.add_argument("--max-passes", type=int)
    p.add_argument("--normalize-betweenness", action="store_true", default=None)
    p.add_argument("--enron-only", action="store_true", help="keep only *enron.com addresses")
    p.add_argument("--keep-display-names", action="store_true")
    p.add_argument("--no-casefold", action="store_true")
    p.add_argument("--no-cc", action="store_true", help="ignore Cc/Bcc recipients")
    p.add_argument("--no-progress", action="store_true")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    address = {}
    if args.enron_only:
        address["domain_pattern"] = ENRON_DOMAIN_PATTERN
    if args.keep_display_names:
        address["strip_display_name"] = False
    if args.no_casefold:
        address["casefold"] = False
    if args.no_cc:
        address["include_cc"] = False

    try:
        settings = AnalysisSettings.from_env(
            workers=args.workers,
            chunk_size=args.chunk_size,
            sample_size=args.sample_size,
            seed=args.seed,
            epsilon=args.epsilon,
            max_passes=args.max_passes,
            normalize_betweenness=args.normalize_betweenness,
            progress=False if args.no_progress else None,
            address=address,
        )
    except ValidationError as e:
        print(f"❌ Error: invalid configuration\n{e}")
        return 2

    if not os.path.exists(args.source):
        print(f"❌ Error: {args.source} not found.")
        return 1

    analyzer = EmailNetworkAnalyzer(args.source, args.output_dir, settings)
    try:
        analyzer.run()
    except MemoryError:
        print("❌ Error: out of memory, graph too large; no results written.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
