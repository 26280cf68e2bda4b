"""
Render a branch comparison to a single static HTML timeline.

- One card per commit, newest first, coloured by status
- Filter by status (source / target / common / ignored) and search by
  message, author or hash
- Ignore reasons and remarks shown inline; buttons copy the CLI command that
  changes them
- Optional per-commit `git show` output, highlighted with pygments
- Cherry-pick command blocks for both directions
"""

from __future__ import annotations

import html
import json
from datetime import tzinfo
from typing import Dict, List, Optional, Tuple

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers.diff import DiffLexer

from .config import TIME_RANGE_LABELS
from .models import STATUS_BOTH, STATUS_SOURCE, STATUS_TARGET, ClassifiedCommit, Comparison
from .reconcile import summarize
from .report import cherry_pick_commands, format_date, newest_first, not_ignored


def render_diff(text: str, max_bytes: int) -> Tuple[str, bool]:
    """Return (highlighted html, truncated) for a `git show` dump."""
    b = text.encode("utf-8", errors="ignore")
    truncated = False
    if max_bytes > 0 and len(b) > max_bytes:
        truncated = True
        text = b[:max_bytes].decode("utf-8", errors="ignore") + "\n\n... [diff truncated]\n"
    return highlight(text, DiffLexer(), HtmlFormatter(nowrap=False)), truncated


def _json_script(element_id: str, data) -> str:
    # no raw "<", ">" or "&" may reach the script element's text
    payload = (
        json.dumps(data, ensure_ascii=False)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )
    return f'<script type="application/json" id="{element_id}">{payload}</script>'


def _badge(c: ClassifiedCommit, source_branch: str, target_branch: str) -> str:
    if c.status == STATUS_BOTH:
        if c.matched_by_message:
            return '<span class="badge both matched" title="Same subject, different hash">synced (message match)</span>'
        return '<span class="badge both">common</span>'
    if c.status == STATUS_SOURCE:
        return f'<span class="badge source">{html.escape(source_branch)}</span>'
    return f'<span class="badge target">{html.escape(target_branch)}</span>'


def _commit_card(
    c: ClassifiedCommit,
    cmp: Comparison,
    ignored: Dict[str, dict],
    remarks: Dict[str, dict],
    diffs: Dict[str, Tuple[str, bool]],
    tz: Optional[tzinfo],
) -> str:
    short = c.hash[:8]
    ign = ignored.get(c.hash)
    remark = remarks.get(c.hash)
    classes = ["commit", c.status]
    if ign:
        classes.append("ignored")
    if c.matched_by_message:
        classes.append("matched-by-message")

    extra = ""
    if c.matched_by_message and c.target_hash:
        extra += (
            f"<div class='meta'><strong>{html.escape(cmp.target_branch)}:</strong> "
            f"<code class='sha' title='{c.target_hash}'>{c.target_hash[:8]}</code></div>"
        )
    if ign:
        extra += f"<div class='note ignore-note'><strong>Ignored:</strong> {html.escape(ign.get('reason') or '')}</div>"
    if remark:
        extra += f"<div class='note remark-note'><strong>Remark:</strong> {html.escape(remark.get('content') or '')}</div>"

    diff_html = ""
    if c.hash in diffs:
        body, truncated = diffs[c.hash]
        warn = ' <span class="pill warn">truncated</span>' if truncated else ""
        diff_html = f"<details class='diff'><summary>Changes{warn}</summary>{body}</details>"

    ignore_cmd = f"branch-compare unignore {c.hash}" if ign else f'branch-compare ignore {c.hash} --reason "Other"'
    remark_cmd = f'branch-compare remark {c.hash} ""' if remark else f'branch-compare remark {c.hash} "..."'

    return f"""
<article class="{' '.join(classes)}" data-hash="{c.hash}" data-status="{c.status}"
  data-ignored="{'1' if ign else '0'}">
  <header>
    <code class="sha" title="{c.hash}">{short}</code>
    {_badge(c, cmp.source_branch, cmp.target_branch)}
    <span class="subject">{html.escape(c.message) if c.message else '(no subject)'}</span>
  </header>
  <div class="meta">{html.escape(format_date(c.date, tz))} &middot; {html.escape(c.author_name)}</div>
  {extra}
  <div class="actions">
    <button class="copy" data-copy="{html.escape(c.hash)}">Copy hash</button>
    <button class="copy" data-copy="{html.escape(ignore_cmd)}">{'Copy unignore command' if ign else 'Copy ignore command'}</button>
    <button class="copy" data-copy="{html.escape(remark_cmd)}">Copy remark command</button>
  </div>
  {diff_html}
</article>
"""


def _command_block(title: str, block_id: str, lines: List[str]) -> str:
    text = "\n".join(lines)
    return f"""
<section class="commands" id="{block_id}">
  <h3>{html.escape(title)} <button class="copy" data-copy-target="{block_id}-text">Copy</button></h3>
  <pre id="{block_id}-text">{html.escape(text)}</pre>
</section>
"""


def build_html(
    comparison: Comparison,
    ignored: Dict[str, dict],
    remarks: Dict[str, dict],
    diffs: Optional[Dict[str, Tuple[str, bool]]] = None,
    tz: Optional[tzinfo] = None,
) -> str:
    cmp = comparison
    diffs = diffs or {}
    pygments_css = HtmlFormatter(nowrap=False).get_style_defs(".highlight")
    ordered = newest_first(cmp.commits)
    summary = summarize(ordered)
    title = f"Branch comparison: {cmp.source_branch} vs {cmp.target_branch}"

    cards = "".join(_commit_card(c, cmp, ignored, remarks, diffs, tz) for c in ordered)
    if not ordered:
        cards = "<p class='empty'>No commits found for this comparison.</p>"

    pending = not_ignored(ordered, ignored)
    to_target = [c for c in pending if c.status == STATUS_SOURCE]
    to_source = [c for c in pending if c.status == STATUS_TARGET]
    commands = ""
    if to_target:
        commands += _command_block(
            f"{cmp.source_branch} → {cmp.target_branch} ({len(to_target)})",
            "source-to-target",
            cherry_pick_commands(to_target, cmp.source_branch, cmp.target_branch),
        )
    if to_source:
        commands += _command_block(
            f"{cmp.target_branch} → {cmp.source_branch} ({len(to_source)})",
            "target-to-source",
            cherry_pick_commands(to_source, cmp.target_branch, cmp.source_branch),
        )

    filters = []
    if cmp.author:
        filters.append(f"<strong>Author:</strong> {html.escape(cmp.author)}")
    if cmp.time_range != "all":
        filters.append(f"<strong>Time range:</strong> {html.escape(TIME_RANGE_LABELS.get(cmp.time_range, cmp.time_range))}")
    if cmp.head:
        filters.append(f"<strong>HEAD commit:</strong> <code>{html.escape(cmp.head[:8])}</code>")
    filters_html = " &middot; ".join(filters)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8" />
<meta name="viewport" content="width=device-width, initial-scale=1" />
<title>{html.escape(title)}</title>
<style>
  :root {{
    --line:#eee; --muted:#666; --brand:#0366d6; --pill:#f2f4f7;
    --source:#d73a49; --target:#0366d6; --both:#6f42c1; --warn:#8a6d3b;
  }}
  * {{ box-sizing: border-box; }}
  body {{ margin:0; font-family: -apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,Helvetica,Arial; line-height:1.45; }}
  code, pre {{ font-family: ui-monospace,SFMono-Regular,Menlo,Monaco,Consolas,'Liberation Mono','Courier New', monospace; }}
  main {{ max-width: 1100px; margin: 0 auto; padding: 1rem; }}
  h1 {{ font-size: 1.3rem; margin: 0 0 .3rem; }}
  .repo-meta {{ color: var(--muted); font-size: .9rem; margin-bottom: .75rem; }}
  .stats {{ display:flex; gap:.5rem; flex-wrap:wrap; margin:.25rem 0 .75rem; }}
  .pill {{ background: var(--pill); border:1px solid #e1e5ea; padding:.15rem .5rem; border-radius:999px; font-size:.85rem; }}
  .pill.warn {{ color: var(--warn); background:#fdf8e7; border-color:#efe3c0; }}
  .toolbar {{ display:flex; gap:.5rem; flex-wrap:wrap; align-items:center; margin-bottom:1rem; }}
  .toolbar input[type=text] {{ flex:1; min-width:220px; padding:.45rem .6rem; border:1px solid #d1d9e0; border-radius:6px; }}
  .filter-btn, button.copy {{ padding:.35rem .8rem; border:1px solid #d1d9e0; background:#fff; border-radius:6px; cursor:pointer; font-size:.85rem; }}
  .filter-btn.active {{ background: var(--brand); border-color: var(--brand); color:#fff; }}
  .commit {{ border:1px solid var(--line); border-left:4px solid #ccc; border-radius:6px; padding:.6rem .8rem; margin-bottom:.6rem; }}
  .commit.source {{ border-left-color: var(--source); }}
  .commit.target {{ border-left-color: var(--target); }}
  .commit.both {{ border-left-color: var(--both); }}
  .commit.ignored {{ opacity:.55; }}
  .commit header {{ display:flex; gap:.5rem; align-items:baseline; flex-wrap:wrap; }}
  .sha {{ background:#eef2f7; padding:.05rem .35rem; border-radius:4px; }}
  .subject {{ font-weight:600; }}
  .meta {{ color: var(--muted); font-size:.85rem; margin-top:.15rem; }}
  .badge {{ font-size:.75rem; padding:.05rem .45rem; border-radius:999px; color:#fff; }}
  .badge.source {{ background: var(--source); }}
  .badge.target {{ background: var(--target); }}
  .badge.both {{ background: var(--both); }}
  .badge.matched {{ background:#2da44e; }}
  .note {{ font-size:.85rem; margin-top:.25rem; padding:.2rem .4rem; border-radius:4px; background:#fafbfc; }}
  .actions {{ margin-top:.35rem; display:flex; gap:.35rem; flex-wrap:wrap; }}
  details.diff {{ margin-top:.4rem; }}
  .highlight {{ overflow-x:auto; font-size:.8rem; }}
  .commands pre, .highlight pre {{ background:#f6f8fa; padding:.75rem; overflow:auto; border-radius:6px; }}
  .commands h3 {{ font-size:1rem; }}
  .empty {{ color: var(--muted); }}

  /* Pygments */
  {pygments_css}
</style>
</head>
<body>
<main>
  <h1>{html.escape(title)}</h1>
  <div class="repo-meta">
    Generated {html.escape(format_date(cmp.generated_at, tz))}{' &middot; ' + filters_html if filters_html else ''}
  </div>
  <div class="stats">
    <span class="pill">{summary.total} commits</span>
    <span class="pill">only {html.escape(cmp.source_branch)}: {summary.source}</span>
    <span class="pill">only {html.escape(cmp.target_branch)}: {summary.target}</span>
    <span class="pill">common: {summary.both} ({summary.matched_by_message} by message)</span>
    <span class="pill">ignored: {sum(1 for c in ordered if c.hash in ignored)}</span>
  </div>

  <div class="toolbar">
    <button class="filter-btn active" data-filter="all">All</button>
    <button class="filter-btn" data-filter="source">Only {html.escape(cmp.source_branch)}</button>
    <button class="filter-btn" data-filter="target">Only {html.escape(cmp.target_branch)}</button>
    <button class="filter-btn" data-filter="both">Common</button>
    <button class="filter-btn" data-filter="ignored">Ignored</button>
    <label><input type="checkbox" id="hide-ignored" /> Hide ignored</label>
    <label><input type="checkbox" id="hide-common" /> Hide common</label>
    <input type="text" id="search" placeholder="Search message, author, hash, remark..." />
    <span class="pill" id="visible-count"></span>
  </div>

  <div id="commit-list">
    {cards}
  </div>

  {commands}
</main>

{_json_script("commit-data", [c.to_dict() for c in ordered])}
{_json_script("ignored-data", list(ignored.values()))}
{_json_script("remark-data", list(remarks.values()))}

<script>
function loadJson(id) {{
  return JSON.parse(document.getElementById(id).textContent || '[]');
}}
const COMMITS = loadJson('commit-data');
const BY_HASH = {{}};
COMMITS.forEach(c => {{ BY_HASH[c.hash] = c; }});
const IGNORED = {{}};
loadJson('ignored-data').forEach(r => {{ IGNORED[r.hash] = r; }});
const REMARKS = {{}};
loadJson('remark-data').forEach(r => {{ REMARKS[r.hash] = r; }});
let currentFilter = (location.hash || '').replace('#filter=', '') || 'all';

function matchesFilter(commit) {{
  const status = commit.status;
  const ignored = commit.hash in IGNORED;
  let show;
  switch (currentFilter) {{
    case 'source': show = status === 'source'; break;
    case 'target': show = status === 'target'; break;
    case 'both': show = status === 'both'; break;
    case 'ignored': show = ignored; break;
    default: show = true;
  }}
  if (show && ignored && currentFilter !== 'ignored' && document.getElementById('hide-ignored').checked) show = false;
  if (show && status === 'both' && currentFilter !== 'both' && document.getElementById('hide-common').checked) show = false;
  return show;
}}

function matchesSearch(commit, q) {{
  if (!q) return true;
  const remark = REMARKS[commit.hash];
  const ignored = IGNORED[commit.hash];
  const hay = [
    commit.message, commit.authorName, commit.hash, commit.targetHash || '',
    remark ? remark.content : '', ignored ? ignored.reason : '',
  ].join(' ').toLowerCase();
  return hay.indexOf(q) >= 0;
}}

function applyFilters() {{
  const q = (document.getElementById('search').value || '').trim().toLowerCase();
  let shown = 0;
  document.querySelectorAll('#commit-list .commit').forEach(el => {{
    const commit = BY_HASH[el.getAttribute('data-hash')];
    const visible = !!commit && matchesFilter(commit) && matchesSearch(commit, q);
    el.style.display = visible ? '' : 'none';
    if (visible) shown++;
  }});
  document.getElementById('visible-count').textContent = shown + ' of ' + COMMITS.length + ' shown';
  document.querySelectorAll('.filter-btn').forEach(b => {{
    b.classList.toggle('active', b.getAttribute('data-filter') === currentFilter);
  }});
  history.replaceState(null, '', currentFilter === 'all' ? location.pathname : '#filter=' + currentFilter);
}}

function copyText(text, btn) {{
  navigator.clipboard.writeText(text).then(() => {{
    const old = btn.textContent;
    btn.textContent = 'Copied';
    setTimeout(() => {{ btn.textContent = old; }}, 1500);
  }}).catch(err => console.error('copy failed', err));
}}

document.querySelectorAll('.filter-btn').forEach(b => b.addEventListener('click', () => {{
  currentFilter = b.getAttribute('data-filter');
  applyFilters();
}}));
document.getElementById('search').addEventListener('input', applyFilters);
document.getElementById('hide-ignored').addEventListener('change', applyFilters);
document.getElementById('hide-common').addEventListener('change', applyFilters);
document.querySelectorAll('button.copy').forEach(b => b.addEventListener('click', () => {{
  const target = b.getAttribute('data-copy-target');
  copyText(target ? document.getElementById(target).textContent : b.getAttribute('data-copy'), b);
}}));

applyFilters();
</script>
</body>
</html>
"""
