"""
Canonical form comparison
    - reads trials.csv written by graph_experiment.py
    - residual of the mean-centered vs the z*-corrected solution per trial
"""

# %%
import os
import sys
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

# %%
res_dir = sys.argv[1] if len(sys.argv) > 1 else os.path.join('results', 'grid', 'test')
df = pd.read_csv(os.path.join(res_dir, 'trials.csv'), index_col=0)
print(df[['res_center', 'res_zstar', 'err_exact']].describe())

# %%
def plot(save=False):
    plt.rcdefaults()
    p = plt.rcParams
    p["figure.figsize"] = 6, 4
    p["figure.dpi"] = 200
    p["figure.facecolor"] = "#ffffff"
    p["axes.grid"] = False
    p['axes.axisbelow'] = True # put grid behind

    fig = plt.figure()
    ax = plt.subplot(1, 1, 1)
    idx = np.arange(len(df))
    ax.bar(idx - 0.2, df['res_center'], width=0.4, color='#3c6e9f', label='mean-centered')
    ax.bar(idx + 0.2, df['res_zstar'], width=0.4, color='#d9822b', label='z* correction')
    ax.set_xticks(idx)
    ax.set_xticklabels(df.index)
    ax.set_xlabel('Trial')
    ax.set_ylabel('RMS residual of Lx - b')
    ax.legend(frameon=False)
    plt.tight_layout()
    if save:
        plt.savefig(os.path.join(res_dir, 'residual_comparison.pdf'), bbox_inches='tight')
    plt.show()

# %%
if __name__ == '__main__':
    plot(save=True)
