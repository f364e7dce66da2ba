"""
Server-rendered pages: the marketing site, auth forms, dashboard and profile.

Pages are plain HTML strings with a shared stylesheet and vanilla JS that
talks to the JSON API; there is no template engine.
"""

from __future__ import annotations

from html import escape
from typing import Iterable, List, Optional

from database import TEAM_SIZES, DemoRequest, User

# ---------- Marketing copy ----------
FEATURES = [
    ("Lightning Fast", "Experience instant updates and real-time collaboration with our optimized platform."),
    ("Team Collaboration", "Work seamlessly with your team members, share tasks, and track progress together."),
    ("Enterprise Security", "Your data is protected with enterprise-grade security and encryption protocols."),
    ("Smart Notifications", "Stay updated with intelligent notifications that matter to your workflow."),
]

FEATURE_DETAILS = [
    ("Task Management", "Create, organize, and track tasks with our intuitive interface. Set priorities, deadlines, and dependencies."),
    ("Real-time Collaboration", "Work together seamlessly with your team. Share updates, comments, and files in real-time."),
    ("Advanced Analytics", "Track progress and performance with detailed insights and customizable dashboards."),
    ("Smart Automation", "Automate repetitive tasks and workflows to save time and reduce errors."),
    ("Time Tracking", "Monitor time spent on tasks and projects with built-in time tracking tools."),
    ("Version Control", "Keep track of changes and maintain a complete history of your projects."),
]

TESTIMONIALS = [
    ("Sarah Thompson", "Product Manager, Tech Solutions Inc.",
     "This platform has transformed how our team manages tasks. The intuitive interface and powerful features have significantly improved our productivity."),
    ("Michael Chen", "Engineering Lead, Innovation Labs",
     "The collaboration features are outstanding. We've seen a 40% increase in project completion rates since implementing this solution."),
    ("Emily Rodriguez", "Operations Director, Global Enterprises",
     "The best task management platform we've used. The customer support is exceptional, and the platform keeps getting better with regular updates."),
]

INTEGRATIONS = [
    ("Slack", "Real-time messaging and notifications"),
    ("GitHub", "Code repository integration"),
    ("Google Drive", "File storage and sharing"),
    ("Zoom", "Video conferencing integration"),
    ("Jira", "Project tracking and management"),
    ("Dropbox", "Cloud storage solution"),
]

SOLUTIONS = [
    ("Enterprise", "Scale your organization with enterprise-grade task management."),
    ("Teams", "Empower your teams with collaborative tools and insights."),
    ("Startups", "Move fast and stay organized as you grow your business."),
    ("Agencies", "Manage client projects and deliverables efficiently."),
    ("Product Teams", "Ship better products faster with agile task management."),
    ("Marketing Teams", "Plan and execute campaigns with precision."),
]

RESOURCES = [
    ("Documentation", "Comprehensive guides and API references", "/docs"),
    ("Getting Started with TaskFlow", "Learn the basics and set up your first project", "/features"),
    ("Advanced Task Management", "Master task organization and workflow optimization", "/features"),
    ("Team Collaboration Best Practices", "Learn how to work effectively with your team", "/solutions"),
    ("API Reference", "Detailed API documentation and examples", "/redoc"),
]

TIERS = [
    ("Starter", "Free", "Perfect for individuals and small projects",
     ["Up to 5 projects", "Basic task management", "2 team members", "1GB storage"]),
    ("Pro", "$12", "Best for growing teams and organizations",
     ["Unlimited projects", "Advanced task management", "Up to 10 team members", "10GB storage",
      "Priority support", "Custom workflows"]),
    ("Enterprise", "$49", "For large-scale operations and teams",
     ["Everything in Pro", "Unlimited team members", "Unlimited storage", "24/7 priority support",
      "Custom integrations", "Advanced security", "API access"]),
]

INDUSTRIES = ["Technology", "Healthcare", "Finance", "Education", "Retail", "Manufacturing", "Other"]

NAV_LINKS = [("Features", "/features"), ("Solutions", "/solutions"),
             ("Resources", "/resources"), ("Pricing", "/pricing")]

# ---------- Shared shell ----------
BASE_CSS = """
:root{
  --bg:#0b0f14; --fg:#e6edf3; --muted:#9aa4af; --accent:#f97316; --accent-hover:#ea580c;
  --card-bg:rgba(255,255,255,0.06); --border:rgba(255,255,255,0.12); --input-bg:rgba(255,255,255,0.06);
  --shadow:0 10px 30px rgba(0,0,0,.35); --radius:16px;
  --high:#f87171; --medium:#fbbf24; --low:#34d399;
}
html[data-theme="light"]{
  --bg:#f5f6f8; --fg:#0b1220; --muted:#5c6773; --accent:#ea580c; --accent-hover:#c2410c;
  --card-bg:rgba(255,255,255,0.8); --border:rgba(0,0,0,0.08); --input-bg:rgba(255,255,255,0.95);
  --shadow:0 10px 30px rgba(16,24,40,.12);
}
*{box-sizing:border-box}
body{ margin:0; min-height:100vh; color:var(--fg);
  font:16px/1.5 system-ui,-apple-system,Segoe UI,Roboto,Inter,Arial,sans-serif;
  background:
    radial-gradient(1200px 800px at 10% 10%, rgba(249,115,22,.14) 0%, transparent 55%),
    radial-gradient(1000px 700px at 90% 30%, rgba(66,32,70,.5) 0%, transparent 60%),
    var(--bg);
}
a{ color:var(--accent); text-decoration:none } a:hover{ text-decoration:underline }
.container{ max-width:1100px; margin:0 auto; padding:24px 20px 40px; }
.narrow{ max-width:480px; }
.header{ display:flex; align-items:center; justify-content:space-between; gap:12px; margin-bottom:24px;
  backdrop-filter:blur(14px) saturate(120%); background:var(--card-bg); border:1px solid var(--border);
  border-radius:calc(var(--radius) + 4px); padding:12px 16px; box-shadow:var(--shadow); }
.brand{ display:flex; align-items:center; gap:10px; font-weight:700; color:var(--fg); }
.brand .logo{ width:30px; height:30px; border-radius:10px; background:linear-gradient(135deg, var(--accent), transparent);
  border:1px solid var(--border); }
.nav{ display:flex; gap:16px; align-items:center; flex-wrap:wrap; font-size:14px; }
.nav a{ color:var(--muted); } .nav a:hover{ color:var(--fg); }
.card{ backdrop-filter:blur(18px) saturate(140%); background:var(--card-bg); border:1px solid var(--border);
  border-radius:var(--radius); padding:18px; box-shadow:var(--shadow); }
.grid{ display:grid; gap:20px; grid-template-columns:repeat(auto-fit, minmax(240px, 1fr)); }
.hero{ text-align:center; padding:48px 0 32px; }
.hero h1{ font-size:44px; margin:0 0 12px; line-height:1.15; }
.hero h1 span{ color:var(--accent); }
.lead{ color:var(--muted); }
h2{ font-size:22px; margin:32px 0 14px; }
label{ display:block; margin:10px 0 6px; color:var(--muted); font-size:13px; }
input, textarea, select{ width:100%; padding:10px 12px; border-radius:12px; border:1px solid var(--border);
  background:var(--input-bg); color:var(--fg); outline:none; font:inherit; }
textarea{ resize:vertical; min-height:90px; }
.btn-row{ display:flex; gap:10px; flex-wrap:wrap; margin-top:14px; align-items:center; }
button, .btn{ appearance:none; border:1px solid transparent; cursor:pointer; display:inline-block;
  background:linear-gradient(180deg, var(--accent), var(--accent-hover)); color:white;
  padding:10px 14px; border-radius:12px; font-weight:600; font-size:14px; }
.btn:hover{ text-decoration:none; }
button.secondary, .btn.secondary{ background:transparent; color:var(--fg); border-color:var(--border); }
button.small, .btn.small{ padding:5px 9px; font-size:12px; border-radius:10px; }
.badge{ display:inline-flex; align-items:center; gap:6px; font-size:12px; padding:3px 8px; border-radius:999px;
  border:1px solid var(--border); color:var(--muted); }
.badge.high{ color:var(--high); border-color:var(--high); }
.badge.medium{ color:var(--medium); border-color:var(--medium); }
.badge.low{ color:var(--low); border-color:var(--low); }
.meta{ color:var(--muted); font-size:12px; }
.error{ color:var(--high); font-size:14px; min-height:1.2em; }
.ok{ color:var(--low); font-size:14px; }
.price{ font-size:34px; font-weight:800; }
ul.ticks{ padding-left:18px; color:var(--muted); }
.switch{ width:42px; height:24px; border-radius:20px; border:1px solid var(--border); background:var(--input-bg);
  position:relative; cursor:pointer; }
.knob{ position:absolute; top:2px; left:2px; width:20px; height:20px; border-radius:50%; background:var(--fg);
  transition:all .2s; }
.switch.on .knob{ transform:translateX(18px); }
.footer{ margin-top:32px; color:var(--muted); font-size:12px; text-align:center; }
"""

THEME_SCRIPT = """
(function(){
  const root = document.documentElement;
  const saved = localStorage.getItem("taskflow-theme");
  if(saved) root.setAttribute("data-theme", saved);
  const sw = document.getElementById("themeSwitch");
  if(!sw) return;
  const apply = () => sw.classList.toggle("on", root.getAttribute("data-theme") === "light");
  apply();
  sw.addEventListener("click", () => {
    const mode = root.getAttribute("data-theme") === "dark" ? "light" : "dark";
    root.setAttribute("data-theme", mode);
    localStorage.setItem("taskflow-theme", mode);
    apply();
  });
})();
function esc(s){
  return String(s ?? "").replace(/[&<>"']/g, c => ({'&':'&amp;','<':'&lt;','>':'&gt;','"':'&quot;',"'":'&#039;'}[c]));
}
async function postJSON(url, body, method){
  const res = await fetch(url, {
    method: method || "POST",
    headers: {"Content-Type": "application/json"},
    credentials: "same-origin",
    body: JSON.stringify(body)
  });
  let data = null;
  try { data = await res.json(); } catch(e) {}
  if(!res.ok){
    let msg = "Request failed";
    if(data && typeof data.detail === "string") msg = data.detail;
    else if(data && Array.isArray(data.detail) && data.detail.length) msg = data.detail[0].msg;
    throw new Error(msg);
  }
  return data;
}
"""


def _nav(user: Optional[User]) -> str:
    links = "".join(f'<a href="{href}">{name}</a>' for name, href in NAV_LINKS)
    if user is not None:
        links += '<a href="/dashboard">Dashboard</a><a href="/profile">Profile</a>'
    else:
        links += '<a href="/sign-in">Sign in</a><a class="btn small" href="/sign-up">Get started</a>'
    return links


def render_page(title: str, body: str, user: Optional[User] = None, script: str = "",
                extra_css: str = "") -> str:
    return (
        '<!doctype html>\n<html lang="en" data-theme="dark">\n'
        '<meta charset="utf-8"/>\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1"/>\n'
        f"<title>{escape(title)} • TaskFlow</title>\n"
        f"<style>{BASE_CSS}{extra_css}</style>\n"
        "<body>\n<div class=\"container\">\n"
        '  <div class="header">\n'
        '    <a class="brand" href="/"><div class="logo"></div>TaskFlow</a>\n'
        f'    <div class="nav">{_nav(user)}'
        '<div class="switch" id="themeSwitch" role="button" aria-label="Toggle theme"><div class="knob"></div></div>'
        "</div>\n  </div>\n"
        f"{body}\n"
        '  <div class="footer">© TaskFlow · <a href="/get-demo">Get a demo</a> · <a href="/docs">API</a></div>\n'
        "</div>\n"
        f"<script>{THEME_SCRIPT}{script}</script>\n"
        "</body>\n</html>\n"
    )


def _cards(items: Iterable[tuple]) -> str:
    return '<div class="grid">' + "".join(
        f'<div class="card"><strong>{escape(t)}</strong><p class="lead">{escape(d)}</p></div>'
        for t, d, *_ in items
    ) + "</div>"


# ---------- Marketing ----------
def home_page(user: Optional[User] = None) -> str:
    cta = ('<a class="btn" href="/dashboard">Open dashboard</a>' if user is not None
           else '<a class="btn" href="/sign-up">Start for free</a>')
    quotes = '<div class="grid">' + "".join(
        f'<div class="card"><p>“{escape(q)}”</p><div class="meta"><strong>{escape(n)}</strong> · {escape(r)}</div></div>'
        for n, r, q in TESTIMONIALS
    ) + "</div>"
    body = f"""
  <div class="hero">
    <h1>Manage tasks with<span> efficiency</span></h1>
    <p class="lead">Streamline your workflow, collaborate seamlessly, and achieve more with our intuitive task management platform.</p>
    <div class="btn-row" style="justify-content:center">{cta}<a class="btn secondary" href="/get-demo">Get a demo</a></div>
  </div>
  <h2>Everything you need to manage tasks effectively</h2>
  {_cards(FEATURES)}
  <h2>What our customers say</h2>
  {quotes}
  <h2>Integrates with your favourite tools</h2>
  {_cards(INTEGRATIONS)}
"""
    return render_page("Task management", body, user)


def features_page(user: Optional[User] = None) -> str:
    body = f"""
  <div class="hero"><h1>Powerful <span>features</span></h1>
  <p class="lead">Everything your team needs to plan, track and finish work.</p></div>
  {_cards(FEATURE_DETAILS)}
"""
    return render_page("Features", body, user)


def solutions_page(user: Optional[User] = None) -> str:
    body = f"""
  <div class="hero"><h1>Solutions for <span>every team</span></h1>
  <p class="lead">From two-person startups to global enterprises.</p></div>
  {_cards(SOLUTIONS)}
"""
    return render_page("Solutions", body, user)


def resources_page(user: Optional[User] = None) -> str:
    items = '<div class="grid">' + "".join(
        f'<a class="card" href="{href}"><strong>{escape(t)}</strong><p class="lead">{escape(d)}</p></a>'
        for t, d, href in RESOURCES
    ) + "</div>"
    body = f"""
  <div class="hero"><h1><span>Resources</span> to get you going</h1>
  <p class="lead">Guides, tutorials and the API reference.</p></div>
  {items}
"""
    return render_page("Resources", body, user)


def pricing_page(user: Optional[User] = None) -> str:
    tiers = '<div class="grid">' + "".join(
        f'<div class="card"><strong>{escape(name)}</strong>'
        f'<div class="price">{escape(price)}{"" if price == "Free" else "<span class=meta>/month</span>"}</div>'
        f'<p class="lead">{escape(desc)}</p>'
        f'<ul class="ticks">{"".join(f"<li>{escape(f)}</li>" for f in feats)}</ul>'
        f'<a class="btn" href="/sign-up">Choose {escape(name)}</a></div>'
        for name, price, desc, feats in TIERS
    ) + "</div>"
    body = f"""
  <div class="hero"><h1>Simple, <span>transparent</span> pricing</h1>
  <p class="lead">Choose the plan that best fits your needs</p></div>
  {tiers}
"""
    return render_page("Pricing", body, user)


def _options(values: List[str], selected: str = "") -> str:
    return "".join(
        f'<option value="{escape(v)}"{" selected" if v == selected else ""}>{escape(v)}</option>'
        for v in values
    )


def get_demo_page(user: Optional[User] = None, error: str = "", form: Optional[dict] = None) -> str:
    form = form or {}
    vals = {k: escape(v or "") for k, v in form.items()}
    body = f"""
  <div class="container narrow card">
    <h2 style="margin-top:0">Schedule a Demo with Us</h2>
    <p class="lead">See how TaskFlow can transform your team's productivity</p>
    <div class="error">{escape(error)}</div>
    <form method="post" action="/get-demo">
      <label>First name</label><input name="first_name" value="{vals.get('first_name', '')}" required/>
      <label>Last name</label><input name="last_name" value="{vals.get('last_name', '')}" required/>
      <label>Work email</label><input name="email" type="email" value="{vals.get('email', '')}" required/>
      <label>Company</label><input name="company" value="{vals.get('company', '')}"/>
      <label>Industry</label><select name="industry"><option value=""></option>{_options(INDUSTRIES, form.get("industry", ""))}</select>
      <label>Team size</label><select name="team_size"><option value=""></option>{_options(list(TEAM_SIZES), form.get("team_size", ""))}</select>
      <label>Message</label><textarea name="message" placeholder="Tell us about your needs and requirements...">{vals.get('message', '')}</textarea>
      <div class="btn-row"><button type="submit">Request demo</button></div>
    </form>
  </div>
"""
    return render_page("Get a demo", body, user)


def demo_thanks_page(req: DemoRequest, user: Optional[User] = None) -> str:
    body = f"""
  <div class="container narrow card">
    <p>✅ Thanks <strong>{escape(req.first_name)}</strong>, we'll reach out to {escape(req.email)} shortly.</p>
    <div class="btn-row"><a class="btn" href="/">Back</a><a class="btn secondary" href="/pricing">See pricing</a></div>
  </div>
"""
    return render_page("Demo requested", body, user)


# ---------- Auth forms ----------
def _auth_form(form_id: str, heading: str, fields: str, submit: str, footer: str) -> str:
    return f"""
  <div class="container narrow card">
    <h2 style="margin-top:0">{heading}</h2>
    <form id="{form_id}">
      {fields}
      <div class="error" id="formError"></div>
      <div class="btn-row"><button type="submit">{submit}</button></div>
    </form>
    <p class="meta">{footer}</p>
  </div>
"""


def sign_in_page() -> str:
    body = _auth_form(
        "signInForm", "Welcome back",
        '<label>Email</label><input name="email" type="email" required/>'
        '<label>Password</label><input name="password" type="password" required/>',
        "Sign in",
        'No account? <a href="/sign-up">Sign up</a> · <a href="/forgot-password">Forgot password?</a>',
    )
    script = """
document.getElementById("signInForm").addEventListener("submit", async (e) => {
  e.preventDefault();
  const fd = new FormData(e.target);
  try{
    await postJSON("/api/auth/signin", {email: fd.get("email"), password: fd.get("password")});
    location.href = "/dashboard";
  }catch(err){ document.getElementById("formError").textContent = err.message; }
});
"""
    return render_page("Sign in", body, script=script)


def sign_up_page() -> str:
    body = _auth_form(
        "signUpForm", "Create your account",
        '<label>Name</label><input name="name" required/>'
        '<label>Email</label><input name="email" type="email" required/>'
        '<label>Password</label><input name="password" type="password" minlength="6" required/>',
        "Sign up",
        'Already registered? <a href="/sign-in">Sign in</a>',
    )
    script = """
document.getElementById("signUpForm").addEventListener("submit", async (e) => {
  e.preventDefault();
  const fd = new FormData(e.target);
  try{
    await postJSON("/api/auth/signup", {name: fd.get("name"), email: fd.get("email"), password: fd.get("password")});
    location.href = "/dashboard";
  }catch(err){ document.getElementById("formError").textContent = err.message; }
});
"""
    return render_page("Sign up", body, script=script)


def forgot_password_page() -> str:
    body = _auth_form(
        "forgotForm", "Reset your password",
        '<p class="lead">Enter your email and we will send you a reset link.</p>'
        '<label>Email</label><input name="email" type="email" placeholder="Enter your email" required/>'
        '<div class="ok" id="formOk"></div>',
        "Send reset link",
        '<a href="/sign-in">Back to sign in</a>',
    )
    script = """
document.getElementById("forgotForm").addEventListener("submit", async (e) => {
  e.preventDefault();
  document.getElementById("formError").textContent = "";
  document.getElementById("formOk").textContent = "";
  try{
    const data = await postJSON("/api/auth/forgot-password", {email: new FormData(e.target).get("email")});
    document.getElementById("formOk").textContent = data.message;
  }catch(err){ document.getElementById("formError").textContent = err.message; }
});
"""
    return render_page("Forgot password", body, script=script)


def reset_password_page(token: str) -> str:
    body = _auth_form(
        "resetForm", "Choose a new password",
        f'<input type="hidden" name="token" value="{escape(token)}"/>'
        '<label>New password</label><input name="password" type="password" minlength="6" required/>'
        '<div class="ok" id="formOk"></div>',
        "Update password",
        '<a href="/sign-in">Back to sign in</a>',
    )
    script = """
document.getElementById("resetForm").addEventListener("submit", async (e) => {
  e.preventDefault();
  const fd = new FormData(e.target);
  try{
    await postJSON("/api/auth/reset-password", {token: fd.get("token"), password: fd.get("password")});
    document.getElementById("formOk").innerHTML = 'Password updated. <a href="/sign-in">Sign in</a>';
  }catch(err){ document.getElementById("formError").textContent = err.message; }
});
"""
    return render_page("Reset password", body, script=script)


# ---------- Profile ----------
def profile_page(user: User) -> str:
    body = f"""
  <div class="container narrow card">
    <h2 style="margin-top:0">Profile</h2>
    <form id="profileForm">
      <label>Name</label><input name="name" value="{escape(user.name)}" required/>
      <label>Email</label><input name="email" type="email" value="{escape(user.email)}" required/>
      <h2>Change password</h2>
      <label>Current password</label><input name="current_password" type="password"/>
      <label>New password</label><input name="new_password" type="password" minlength="6"/>
      <div class="error" id="formError"></div><div class="ok" id="formOk"></div>
      <div class="btn-row"><button type="submit">Save changes</button>
        <button type="button" class="secondary" id="signOut">Sign out</button></div>
    </form>
  </div>
"""
    script = """
document.getElementById("profileForm").addEventListener("submit", async (e) => {
  e.preventDefault();
  const fd = new FormData(e.target);
  const body = {name: fd.get("name"), email: fd.get("email")};
  if(fd.get("current_password") && fd.get("new_password")){
    body.current_password = fd.get("current_password");
    body.new_password = fd.get("new_password");
  }
  document.getElementById("formError").textContent = "";
  document.getElementById("formOk").textContent = "";
  try{
    await postJSON("/api/user/profile", body, "PUT");
    document.getElementById("formOk").textContent = "Profile updated successfully";
    e.target.current_password.value = ""; e.target.new_password.value = "";
  }catch(err){ document.getElementById("formError").textContent = err.message; }
});
document.getElementById("signOut").addEventListener("click", async () => {
  await postJSON("/api/auth/signout", {});
  location.href = "/";
});
"""
    return render_page("Profile", body, user, script=script)


# ---------- Dashboard ----------
DASHBOARD_CSS = """
.tabs{ display:flex; gap:8px; flex-wrap:wrap; margin-bottom:16px; }
.tabs button.active{ outline:2px solid var(--fg); }
.toolbar{ display:flex; gap:10px; flex-wrap:wrap; align-items:center; margin-bottom:14px; }
.toolbar input, .toolbar select{ width:auto; }
.stats{ display:grid; gap:14px; grid-template-columns:repeat(auto-fit, minmax(160px, 1fr)); margin-bottom:18px; }
.stat .value{ font-size:26px; font-weight:800; }
.task{ display:flex; flex-direction:column; gap:6px; padding:12px; border-radius:12px; border:1px dashed var(--border);
  background:rgba(255,255,255,0.04); }
.task + .task{ margin-top:10px; }
.task.done .title{ text-decoration:line-through; color:var(--muted); }
.task .row{ display:flex; justify-content:space-between; align-items:center; gap:8px; flex-wrap:wrap; }
.cal{ display:grid; grid-template-columns:repeat(7, 1fr); gap:1px; background:var(--border); border-radius:12px; overflow:hidden; }
.cal > div{ background:var(--bg); min-height:90px; padding:6px; font-size:12px; }
.cal .head{ min-height:auto; text-align:center; color:var(--muted); font-weight:600; }
.cal .today{ outline:2px solid var(--accent); outline-offset:-2px; }
.cal .item{ display:block; margin-top:3px; padding:2px 4px; border-radius:6px; background:var(--card-bg); overflow:hidden; white-space:nowrap; text-overflow:ellipsis; }
.modal{ position:fixed; inset:0; background:rgba(0,0,0,.55); display:none; align-items:center; justify-content:center; z-index:20; }
.modal.open{ display:flex; }
.modal .card{ width:min(560px, 94vw); max-height:92vh; overflow:auto; background:var(--bg); }
.cols{ display:grid; grid-template-columns:1fr 1fr; gap:0 12px; }
.rule{ display:grid; grid-template-columns:1fr 1fr auto; gap:8px; margin-top:6px; }
#timerPanel{ position:fixed; z-index:30; width:240px; display:none; background:var(--bg); }
#timerPanel .drag{ cursor:move; font-weight:700; display:flex; justify-content:space-between; align-items:center; user-select:none; }
#timerPanel .clock{ font-size:42px; font-weight:800; text-align:center; font-variant-numeric:tabular-nums; margin:10px 0; }
#timerPanel.complete .clock{ color:var(--low); }
"""


def dashboard_page(user: User) -> str:
    body = f"""
  <div class="row" style="display:flex;justify-content:space-between;align-items:center;gap:12px;flex-wrap:wrap">
    <div><h2 style="margin:0">Hi, {escape(user.name)}</h2><div class="meta">Here is what is on your plate.</div></div>
    <div class="btn-row" style="margin:0">
      <button id="newTaskBtn">New task</button>
      <button class="secondary" id="runDueBtn" title="Run due-date automation rules">Run due rules</button>
      <button class="secondary" id="signOut">Sign out</button>
    </div>
  </div>
  <div class="error" id="pageError"></div>
  <div class="tabs">
    <button class="secondary active" data-view="list">List</button>
    <button class="secondary" data-view="calendar">Calendar</button>
    <button class="secondary" data-view="timeline">Timeline</button>
    <button class="secondary" data-view="analytics">Analytics</button>
  </div>

  <div id="view-list" class="card">
    <div class="toolbar">
      <input id="search" placeholder="Search tasks…"/>
      <select id="filterPriority">
        <option value="all">All priorities</option><option value="high">High</option>
        <option value="medium">Medium</option><option value="low">Low</option>
      </select>
      <select id="sortBy">
        <option value="">Newest</option><option value="priority">Priority</option>
        <option value="due_date">Due date</option><option value="status">Status</option>
      </select>
    </div>
    <div id="taskList"></div>
  </div>

  <div id="view-calendar" class="card" style="display:none">
    <div class="toolbar" style="justify-content:space-between">
      <strong id="calTitle"></strong>
      <div class="btn-row" style="margin:0">
        <button class="secondary small" id="calPrev">‹</button>
        <button class="secondary small" id="calToday">Today</button>
        <button class="secondary small" id="calNext">›</button>
      </div>
    </div>
    <div class="cal" id="calGrid"></div>
  </div>

  <div id="view-timeline" class="card" style="display:none">
    <div class="toolbar">
      <select id="timelineRange">
        <option value="all">All dates</option><option value="today">Today</option>
        <option value="week">This week</option><option value="month">This month</option>
      </select>
    </div>
    <div id="timeline"></div>
  </div>

  <div id="view-analytics" style="display:none">
    <div class="stats" id="stats"></div>
  </div>

  <div class="modal" id="taskModal">
    <div class="card">
      <h2 style="margin-top:0" id="modalTitle">New task</h2>
      <form id="taskForm">
        <label>Title</label><input name="title" required maxlength="300"/>
        <label>Description</label><textarea name="description"></textarea>
        <div class="cols">
          <div><label>Due date</label><input name="due_date" type="date"/></div>
          <div><label>Priority</label><select name="priority">
            <option value="low">Low</option><option value="medium" selected>Medium</option><option value="high">High</option>
          </select></div>
          <div><label>Pomodoro (min)</label><input name="pomodoro_length" type="number" min="1" max="240" value="25"/></div>
          <div><label>Short break (min)</label><input name="short_break" type="number" min="0" max="120" value="5"/></div>
          <div><label>Long break (min)</label><input name="long_break" type="number" min="0" max="240" value="15"/></div>
          <div><label>Short break (sec)</label><input name="short_break_seconds" type="number" min="0" max="59" value="0"/></div>
          <div><label>Long break (sec)</label><input name="long_break_seconds" type="number" min="0" max="59" value="0"/></div>
          <div><label><input name="is_automated" type="checkbox" style="width:auto"/> Automated</label></div>
        </div>
        <label>Automation rules</label>
        <div id="rules"></div>
        <button type="button" class="secondary small" id="addRule" style="margin-top:8px">Add rule</button>
        <div class="error" id="formError"></div>
        <div class="btn-row"><button type="submit">Save</button>
          <button type="button" class="secondary" id="cancelModal">Cancel</button></div>
      </form>
    </div>
  </div>

  <div class="card" id="timerPanel">
    <div class="drag" id="timerDrag"><span id="timerLabel">Focus</span>
      <button class="secondary small" id="muteBtn" title="Toggle sound">🔔</button></div>
    <div class="meta" id="timerTask"></div>
    <div class="clock" id="timerClock">00:00</div>
    <div class="btn-row" style="justify-content:center"><button class="secondary small" id="stopTimer">Stop</button></div>
  </div>
"""
    return render_page("Dashboard", body, user, script=DASHBOARD_SCRIPT, extra_css=DASHBOARD_CSS)


DASHBOARD_SCRIPT = """
const TIMER_FIELDS = ["pomodoro_length", "short_break", "long_break", "short_break_seconds", "long_break_seconds"];
const CONDITIONS = ["on_creation", "on_completion", "on_due_date"];
const ACTIONS = ["create_followup", "notify_team", "mark_complete"];
const TIMER_LABELS = {work: "Focus", shortBreak: "Short Break", longBreak: "Long Break"};
const state = { tasks: [], view: "list", editing: null, calendar: new Date(), timer: null, muted: false };

function showError(msg){ document.getElementById("pageError").textContent = msg || ""; }

async function api(path, opts){
  const res = await fetch(path, Object.assign({credentials: "same-origin"}, opts || {}));
  if(res.status === 401){ location.href = "/sign-in"; throw new Error("Not authenticated"); }
  const data = await res.json().catch(() => null);
  if(!res.ok) throw new Error((data && typeof data.detail === "string") ? data.detail : "Request failed");
  return data;
}
function send(path, method, body){
  return api(path, {method: method, headers: {"Content-Type": "application/json"}, body: JSON.stringify(body)});
}
function fmtDate(iso){ return iso ? iso.slice(0, 10) : ""; }

/* ---- list ---- */
function taskRow(t){
  const done = t.status === "completed";
  const due = t.due_date ? `<span>Due ${esc(fmtDate(t.due_date))}</span>` : "";
  return `
    <div class="task ${done ? "done" : ""}" id="task-${t.id}">
      <div class="row">
        <label style="display:flex;gap:8px;align-items:center;margin:0;color:var(--fg)">
          <input type="checkbox" style="width:auto" ${done ? "checked" : ""} onchange="toggleTask(${t.id})"/>
          <strong class="title">${esc(t.title)}</strong>
        </label>
        <div class="btn-row" style="margin:0">
          <button class="small" onclick="startTimer(${t.id}, 'work')">Focus</button>
          <button class="secondary small" onclick="startTimer(${t.id}, 'shortBreak')">Short Break</button>
          <button class="secondary small" onclick="startTimer(${t.id}, 'longBreak')">Long Break</button>
          <button class="secondary small" onclick="automate(${t.id}, 'create_followup')">Follow-up</button>
          <button class="secondary small" onclick="automate(${t.id}, 'notify_team')">Notify</button>
          <button class="secondary small" onclick="openModal(${t.id})">Edit</button>
          <button class="secondary small" onclick="deleteTask(${t.id})">Delete</button>
        </div>
      </div>
      ${t.description ? `<div class="meta">${esc(t.description)}</div>` : ""}
      <div class="meta" style="display:flex;gap:8px;flex-wrap:wrap">
        <span class="badge ${esc(t.priority)}">${esc(t.priority)}</span>${due}
        <span>${t.time_spent} min tracked</span>
        ${t.automation_rules.length ? `<span>${t.automation_rules.length} rule(s)</span>` : ""}
      </div>
    </div>`;
}

async function loadList(){
  const params = new URLSearchParams({
    priority: document.getElementById("filterPriority").value,
    search: document.getElementById("search").value,
    sort_by: document.getElementById("sortBy").value
  });
  state.tasks = await api("/api/tasks?" + params.toString());
  document.getElementById("taskList").innerHTML =
    state.tasks.map(taskRow).join("") || "<div class='task'>No tasks yet. Create one with “New task”.</div>";
}

async function toggleTask(id){
  const t = state.tasks.find(x => x.id === id);
  if(!t) return;
  try{
    await send("/api/tasks/" + id, "PUT", {status: t.status === "completed" ? "pending" : "completed"});
    refresh();
  }catch(err){ showError(err.message); }
}

async function deleteTask(id){
  if(!confirm("Delete this task?")) return;
  try{ await api("/api/tasks/" + id, {method: "DELETE"}); refresh(); }
  catch(err){ showError(err.message); }
}

async function automate(id, type){
  try{
    const data = await send("/api/tasks/automation", "POST", {task_id: id, automation_type: type});
    if(data && data.message) alert(data.message);
    refresh();
  }catch(err){ showError(err.message); }
}

/* ---- calendar ---- */
async function loadCalendar(){
  const d = state.calendar;
  const data = await api(`/api/tasks/calendar?year=${d.getFullYear()}&month=${d.getMonth() + 1}`);
  document.getElementById("calTitle").textContent =
    d.toLocaleString(undefined, {month: "long", year: "numeric"});
  const today = new Date().toISOString().slice(0, 10);
  let html = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"].map(n => `<div class="head">${n}</div>`).join("");
  html += "<div></div>".repeat(data.leading_blanks);
  html += data.days.map(day => `
    <div class="${day.day === today ? "today" : ""}">
      <div>${Number(day.day.slice(8))}</div>
      ${day.tasks.map(t => `<a class="item" href="#" onclick="openModal(${t.id});return false" style="${t.status === "completed" ? "text-decoration:line-through" : ""}">${esc(t.title)}</a>`).join("")}
    </div>`).join("");
  document.getElementById("calGrid").innerHTML = html;
}
function shiftMonth(delta){
  const d = state.calendar;
  state.calendar = delta === 0 ? new Date() : new Date(d.getFullYear(), d.getMonth() + delta, 1);
  loadCalendar().catch(err => showError(err.message));
}

/* ---- timeline ---- */
async function loadTimeline(){
  const range = document.getElementById("timelineRange").value;
  const groups = await api("/api/tasks/timeline?range=" + range);
  document.getElementById("timeline").innerHTML = groups.map(g => `
    <h2 style="font-size:16px">${esc(new Date(g.day + "T00:00:00").toDateString())}</h2>
    ${g.tasks.map(taskRow).join("")}`).join("") || "<div class='task'>No tasks with due dates in this range.</div>";
  groups.forEach(g => g.tasks.forEach(t => { if(!state.tasks.find(x => x.id === t.id)) state.tasks.push(t); }));
}

/* ---- analytics ---- */
async function loadAnalytics(){
  const a = await api("/api/tasks/analytics");
  const stat = (value, label) => `<div class="card stat"><div class="value">${esc(value)}</div><div class="meta">${esc(label)}</div></div>`;
  document.getElementById("stats").innerHTML = [
    stat(`${a.completed}/${a.total}`, "Tasks completed"),
    stat(`${a.completion_rate}%`, "Completion rate"),
    stat(a.pending, "Pending"),
    stat(a.overdue, "Overdue"),
    stat(a.by_priority.high, "High priority"),
    stat(a.by_priority.medium, "Medium priority"),
    stat(a.by_priority.low, "Low priority"),
    stat(a.total_time_tracked_label, "Total Time Tracked"),
    stat(a.average_time_per_task_label, "Average Time per Task"),
  ].join("");
}

const loaders = {list: loadList, calendar: loadCalendar, timeline: loadTimeline, analytics: loadAnalytics};
function refresh(){
  showError("");
  const jobs = [loaders[state.view]()];
  if(state.view !== "list") jobs.push(loadList());
  Promise.all(jobs).catch(err => showError(err.message));
}
function setView(view){
  state.view = view;
  Object.keys(loaders).forEach(v => {
    document.getElementById("view-" + v).style.display = v === view ? "" : "none";
  });
  document.querySelectorAll(".tabs button").forEach(b => b.classList.toggle("active", b.dataset.view === view));
  refresh();
}

/* ---- create / edit ---- */
function ruleRow(rule){
  const opts = (values, sel) => values.map(v => `<option value="${v}" ${v === sel ? "selected" : ""}>${v}</option>`).join("");
  const row = document.createElement("div");
  row.className = "rule";
  row.innerHTML = `<select class="cond">${opts(CONDITIONS, rule.condition)}</select>
    <select class="act">${opts(ACTIONS, rule.action)}</select>
    <button type="button" class="secondary small">×</button>`;
  row.dataset.parameters = JSON.stringify(rule.parameters || {});
  row.querySelector("button").addEventListener("click", () => row.remove());
  document.getElementById("rules").appendChild(row);
}

async function openModal(id){
  let t = null;
  if(id){
    t = state.tasks.find(x => x.id === id);
    if(!t){
      try{ t = await api("/api/tasks/" + id); state.tasks.push(t); }
      catch(err){ showError(err.message); return; }
    }
  }
  const f = document.getElementById("taskForm");
  f.reset();
  document.getElementById("rules").innerHTML = "";
  document.getElementById("formError").textContent = "";
  state.editing = t;
  document.getElementById("modalTitle").textContent = t ? "Edit task" : "New task";
  if(t){
    f.elements.title.value = t.title;
    f.elements.description.value = t.description || "";
    f.elements.due_date.value = t.due_date ? t.due_date.slice(0, 10) : "";
    f.elements.priority.value = t.priority;
    f.elements.is_automated.checked = t.is_automated;
    TIMER_FIELDS.forEach(k => { f.elements[k].value = t.timer_settings[k]; });
    t.automation_rules.forEach(ruleRow);
  }
  document.getElementById("taskModal").classList.add("open");
}
function closeModal(){ document.getElementById("taskModal").classList.remove("open"); state.editing = null; }

async function saveTask(e){
  e.preventDefault();
  const f = e.target;
  const timer = {};
  TIMER_FIELDS.forEach(k => { timer[k] = Number(f.elements[k].value) || 0; });
  if(!timer.pomodoro_length) timer.pomodoro_length = 25;
  const body = {
    title: f.elements.title.value.trim(),
    description: f.elements.description.value,
    due_date: f.elements.due_date.value ? f.elements.due_date.value + "T00:00:00" : null,
    priority: f.elements.priority.value,
    is_automated: f.elements.is_automated.checked,
    timer_settings: timer,
    automation_rules: Array.from(document.querySelectorAll("#rules .rule")).map(r => ({
      condition: r.querySelector(".cond").value,
      action: r.querySelector(".act").value,
      parameters: JSON.parse(r.dataset.parameters || "{}")
    }))
  };
  try{
    if(state.editing) await send("/api/tasks/" + state.editing.id, "PUT", body);
    else await send("/api/tasks", "POST", body);
    closeModal();
    refresh();
  }catch(err){ document.getElementById("formError").textContent = err.message; }
}

/* ---- timer ---- */
function beep(){
  if(state.muted) return;
  try{
    const ctx = new (window.AudioContext || window.webkitAudioContext)();
    [0, 0.35, 0.7].forEach(offset => {
      const osc = ctx.createOscillator(), gain = ctx.createGain();
      osc.frequency.value = 880;
      gain.gain.value = 0.2;
      osc.connect(gain); gain.connect(ctx.destination);
      osc.start(ctx.currentTime + offset);
      osc.stop(ctx.currentTime + offset + 0.2);
    });
  }catch(e){ console.error(e); }
}
function paintTimer(){
  const t = state.timer;
  const m = String(Math.floor(t.left / 60)).padStart(2, "0"), s = String(t.left % 60).padStart(2, "0");
  document.getElementById("timerClock").textContent = `${m}:${s}`;
}
async function startTimer(id, type){
  stopTimer();
  try{
    const info = await api(`/api/tasks/${id}/timer?type=${type}`);
    const task = state.tasks.find(x => x.id === id);
    state.timer = {taskId: id, type: type, total: info.seconds, left: info.seconds, interval: null};
    const panel = document.getElementById("timerPanel");
    panel.classList.remove("complete");
    if(!panel.style.left){ panel.style.right = "24px"; panel.style.bottom = "24px"; }
    panel.style.display = "block";
    document.getElementById("timerLabel").textContent = TIMER_LABELS[type];
    document.getElementById("timerTask").textContent = task ? task.title : "";
    paintTimer();
    state.timer.interval = setInterval(tick, 1000);
  }catch(err){ showError(err.message); }
}
function tick(){
  const t = state.timer;
  if(!t) return;
  t.left -= 1;
  if(t.left <= 0){
    t.left = 0;
    clearInterval(t.interval);
    t.interval = null;
    document.getElementById("timerPanel").classList.add("complete");
    beep();
    if(t.type === "work"){
      send(`/api/tasks/${t.taskId}/time`, "POST", {minutes: Math.max(1, Math.round(t.total / 60))})
        .then(refresh).catch(err => showError(err.message));
    }
  }
  paintTimer();
}
function stopTimer(){
  if(state.timer && state.timer.interval) clearInterval(state.timer.interval);
  state.timer = null;
  document.getElementById("timerPanel").style.display = "none";
}
(function dragTimer(){
  const panel = document.getElementById("timerPanel");
  document.getElementById("timerDrag").addEventListener("mousedown", (e) => {
    if(e.target.tagName === "BUTTON") return;
    e.preventDefault();
    const rect = panel.getBoundingClientRect();
    const dx = e.clientX - rect.left, dy = e.clientY - rect.top;
    const move = (ev) => {
      panel.style.right = ""; panel.style.bottom = "";
      panel.style.left = (ev.clientX - dx) + "px";
      panel.style.top = (ev.clientY - dy) + "px";
    };
    const up = () => { document.removeEventListener("mousemove", move); document.removeEventListener("mouseup", up); };
    document.addEventListener("mousemove", move);
    document.addEventListener("mouseup", up);
  });
})();

/* ---- wiring ---- */
document.querySelectorAll(".tabs button").forEach(b => b.addEventListener("click", () => setView(b.dataset.view)));
document.getElementById("search").addEventListener("input", () => loadList().catch(err => showError(err.message)));
document.getElementById("filterPriority").addEventListener("change", () => loadList().catch(err => showError(err.message)));
document.getElementById("sortBy").addEventListener("change", () => loadList().catch(err => showError(err.message)));
document.getElementById("timelineRange").addEventListener("change", () => loadTimeline().catch(err => showError(err.message)));
document.getElementById("calPrev").addEventListener("click", () => shiftMonth(-1));
document.getElementById("calNext").addEventListener("click", () => shiftMonth(1));
document.getElementById("calToday").addEventListener("click", () => shiftMonth(0));
document.getElementById("newTaskBtn").addEventListener("click", () => openModal(null));
document.getElementById("cancelModal").addEventListener("click", closeModal);
document.getElementById("addRule").addEventListener("click", () => ruleRow({condition: "on_completion", action: "create_followup"}));
document.getElementById("taskForm").addEventListener("submit", saveTask);
document.getElementById("stopTimer").addEventListener("click", stopTimer);
document.getElementById("muteBtn").addEventListener("click", (e) => {
  state.muted = !state.muted;
  e.target.textContent = state.muted ? "🔕" : "🔔";
});
document.getElementById("runDueBtn").addEventListener("click", async () => {
  try{
    const data = await send("/api/tasks/automation/due", "POST", {});
    alert(data.task_ids.length ? `Due-date rules ran for ${data.task_ids.length} task(s).` : "No overdue tasks with due-date rules.");
    refresh();
  }catch(err){ showError(err.message); }
});
document.getElementById("signOut").addEventListener("click", async () => {
  await send("/api/auth/signout", "POST", {});
  location.href = "/";
});
setView("list");
"""
