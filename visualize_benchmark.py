#!/usr/bin/env python3
"""
Visualize benchmark results from benchmark_results.json
Creates bar charts comparing execution times across strategies and worker counts.
"""

import json
import matplotlib.pyplot as plt
import numpy as np
from pathlib import Path

BASELINE = 'sequential'


def load_results(json_path='benchmark_results.json'):
    """Load benchmark results from JSON file."""
    with open(json_path, 'r') as f:
        data = json.load(f)
    return data


def run_label(entry):
    if entry['strategy'] == BASELINE:
        return BASELINE
    return f"{entry['strategy']} x{entry['workers']}"


def organize_data(data):
    """Organize results as {(image_size, kernel_size): {label: time_ms}}."""
    results = {}

    for entry in data['results']:
        key = (entry['image_size'], entry['kernel_size'])
        results.setdefault(key, {})[run_label(entry)] = entry['seconds'] * 1000

    return results


def _label_order(label):
    # baseline first, then strategy, then worker count
    if label == BASELINE:
        return (0, '', 0)
    strategy, workers = label.split(' x')
    return (1, strategy, int(workers))


def compute_speedups(times):
    """Speedup of every run against the sequential baseline of the same configuration."""
    baseline = times.get(BASELINE)
    if not baseline:
        return {}
    return {label: baseline / ms for label, ms in times.items() if label != BASELINE and ms > 0}


def plot_benchmark_results(data, output_path='benchmark_plot.png', show=True):
    """Create visualization of benchmark results with execution times and speedups."""
    results = organize_data(data)
    labels = sorted({label for times in results.values() for label in times}, key=_label_order)
    img_sizes = sorted({img_size for img_size, _ in results})
    n_sizes = len(img_sizes)

    fig = plt.figure(figsize=(8 * n_sizes, 12))
    gs = fig.add_gridspec(2, n_sizes, hspace=0.3, wspace=0.25)
    fig.text(0.5, 0.96, 'Image Convolution Benchmark Results',
             ha='center', fontsize=16, fontweight='bold')
    cmap = plt.get_cmap('tab10')

    for idx, img_size in enumerate(img_sizes):
        kernel_sizes = sorted(k for img, k in results if img == img_size)
        x = np.arange(len(kernel_sizes))
        width = 0.8 / max(1, len(labels))

        ax_time = fig.add_subplot(gs[0, idx])
        ax_speed = fig.add_subplot(gs[1, idx])
        for i, label in enumerate(labels):
            offset = (i - len(labels) / 2 + 0.5) * width
            color = cmap(i % 10)
            times = [results[(img_size, k)].get(label, 0) for k in kernel_sizes]
            ax_time.bar(x + offset, times, width, label=label, color=color, alpha=0.8)
            if label != BASELINE:
                speedups = [compute_speedups(results[(img_size, k)]).get(label, 0) for k in kernel_sizes]
                ax_speed.bar(x + offset, speedups, width, label=label, color=color, alpha=0.8)

        ax_time.set_xlabel('Kernel Size', fontsize=11, fontweight='bold')
        ax_time.set_ylabel('Time (ms)', fontsize=11, fontweight='bold')
        ax_time.set_title(f'Execution Time - {img_size}x{img_size}', fontsize=12, fontweight='bold')
        ax_time.set_yscale('log')

        ax_speed.axhline(y=1.0, color='red', linestyle='--', linewidth=1, alpha=0.7,
                         label=f'Baseline ({BASELINE})')
        ax_speed.set_xlabel('Kernel Size', fontsize=11, fontweight='bold')
        ax_speed.set_ylabel(f'Speedup vs {BASELINE}', fontsize=11, fontweight='bold')
        ax_speed.set_title(f'Speedup - {img_size}x{img_size}', fontsize=12, fontweight='bold')

        for ax in (ax_time, ax_speed):
            ax.set_xticks(x)
            ax.set_xticklabels([f'{k}x{k}' for k in kernel_sizes])
            ax.legend(fontsize=8, loc='best')
            ax.grid(True, alpha=0.3, axis='y')

    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    print(f"✓ Execution times plot saved to: {output_path}")
    if show:
        plt.show()
    plt.close(fig)


def print_summary(data):
    """Print summary statistics."""
    results = organize_data(data)

    print("\n" + "="*80)
    print("BENCHMARK SUMMARY")
    print("="*80)

    for (img_size, kernel_size), times in sorted(results.items()):
        print(f"\nImage: {img_size}x{img_size} | Kernel: {kernel_size}x{kernel_size}")
        print("-" * 80)

        for label, time_ms in sorted(times.items(), key=lambda x: x[1]):
            print(f"  {label:30s}: {time_ms:10.2f} ms")

        speedups = compute_speedups(times)
        if speedups:
            print(f"\n  Speedups vs {BASELINE}:")
            for label, speedup in sorted(speedups.items(), key=lambda x: -x[1]):
                print(f"    {label:30s}: {speedup:6.2f}x")


def main():
    json_path = Path('benchmark_results.json')
    if not json_path.exists():
        print(f"Error: {json_path} not found!")
        print("Run 'python benchmark.py' first to generate results.")
        return 1

    data = load_results(json_path)
    print_summary(data)

    print("\nGenerating plot...")
    plot_benchmark_results(data)

    print("\n✓ Visualization complete!")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
