"""Run the cluster-search command line tool with `python -m cluster_search`."""

from cluster_search.tool.cluster_search import main


if __name__ == "__main__":
    main()
