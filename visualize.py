# visualize.py
import os
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt


def _ensure_dir(outpath):
    dirname = os.path.dirname(outpath)
    if dirname:
        os.makedirs(dirname, exist_ok=True)


def plot_hit_miss_rate(result, outpath):
    _ensure_dir(outpath)
    plt.figure(figsize=(4, 4))
    labels = ['Hit', 'Miss', 'Miss + eviction']
    sizes = [result.hits, result.misses - result.evictions, result.evictions]
    if not any(sizes):
        sizes = [0, 1, 0]  # empty trace
    plt.pie(sizes, labels=labels, autopct='%1.1f%%')
    plt.title("Cache Hit/Miss Rate")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_outcome_counts(result, outpath):
    _ensure_dir(outpath)
    plt.figure(figsize=(6, 4))
    plt.bar(['hits', 'misses', 'evictions'], [result.hits, result.misses, result.evictions],
            color=['tab:green', 'tab:red', 'tab:orange'])
    plt.title(f"Outcomes ({result.accesses} accesses, hit rate {result.hit_rate:.1%})")
    plt.ylabel("Count")
    plt.grid(True, axis='y')
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()
