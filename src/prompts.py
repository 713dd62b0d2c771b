"""Prompt templates for the conversational search engine.

Each prompt constant carries a header explaining:
1. Component where it is used
2. Called by: file + function
3. Input/Output description & how the output is consumed

All prompts MUST be defined in src/prompts.py per project convention.
Never inline prompt strings in components or services.
Use template variables for dynamic content.

Prompts follow the 4-section format:

### Task   – one-sentence imperative
### Input  – enumerated variables
### Rules  – numbered constraints
### Output format – exact JSON / text template
"""

# =============================================================================
# Schema / Domain Description
# =============================================================================

# ─────────────────────────────────────────────────────────────────────────────
# SCHEMA_CONTEXT
# ─────────────────────────────────────────────────────────────────────────────
# Component: Query Drafting Engine (fixed prefix of every drafting prompt)
# Called by: src/search/drafting.py :: QueryDraftingEngine.build_system_prompt()
#
# Input: {table} — fully qualified people table (settings.clickhouse_table)
# Output: — (context only)
#
# Notes: Categorical values are stored upper-case and in Portuguese; keep the
# value lists in sync with the classifier that fills seniority/area.
# ─────────────────────────────────────────────────────────────────────────────
SCHEMA_CONTEXT = """You have read-only access to a ClickHouse database of LinkedIn profiles.
This is a RECRUITING agent: focus on finding ideal candidates by skills, experience, education and professional profile.

=== MAIN TABLE: {table} ===

COLUMNS:
- profile_id (String) - Internal unique profile identifier (STABLE KEY - always select it)
- profile_public_id (String) - Public LinkedIn identifier (may change on rename)
- full_name (String) - Full display name
- headline (String) - Professional headline (IMPORTANT for roles and specialities)
- about_me (String) - Free-text summary (may be empty)
- profile_url (String) - Public profile URL
- profile_image_url (String) - Profile picture URL (may be empty)
- current_job_title (String) - Current main job title
- current_company (String) - Current company name (free text, may be inconsistent)
- current_company_id (Int64) - Internal company identifier

AREA CLASSIFICATION:
- macroarea (String) - Values: ADMINISTRACAO, ENGENHARIA E CONSTRUCAO, MARKETING E VENDAS, N/A, OPERACOES E INDUSTRIA, TECNOLOGIA, DADOS E PRODUTOS
- area (String) - Values: ADMINISTRATIVO, ATENDIMENTO AO CLIENTE, AUDITORIA, COMPLIANCE, COMPRAS, CONSULTORIA, CONTABILIDADE, CONTROLADORIA, CYBERSEGURANCA, DADOS, DESENVOLVIMENTO, DESIGN, ENGENHARIA, FINANCEIRO, INFRAESTRUTURA, INOVACAO, JURIDICO, LOGISTICA, MARKETING, OPERACOES, PRODUTOS, QUALIDADE, RECURSOS HUMANOS, SUPORTE, TECNOLOGIA, VENDAS

SENIORITY:
- seniority (String) - Values: ESTAGIARIO / TRAINEE, ANALISTA, ESPECIALISTA, SUPERVISOR, COORDENADOR, GERENTE, C-SUITE / DIRETOR, OUTROS
- seniority_order (Int32) - Numeric rank (higher = more senior; 1 = ESTAGIARIO / TRAINEE, 2 = ANALISTA)

LOCATION:
- city (String) - Upper-case without accents (e.g. SAO PAULO, CAMPINAS, RIO DE JANEIRO)
- state (String) - Upper-case without accents (e.g. SAO PAULO, MINAS GERAIS, PARANA)
- country (String) - Value: BRASIL

HISTORY:
- experience (String) - Work history (structured text) - key for company/technology experience
- education (String) - Education history (free text, often empty)
- certifications (String) - Certifications (AWS, Google, Microsoft, ...)

QUERY PATTERNS:
- Skills: (headline ILIKE '%python%' OR about_me ILIKE '%python%' OR experience ILIKE '%python%')
- Specific role: (current_job_title ILIKE '%tech lead%' OR headline ILIKE '%tech lead%')
- Company experience: experience ILIKE '%nubank%'
- Location: city = 'SAO PAULO'
- Seniority: seniority IN ('GERENTE', 'C-SUITE / DIRETOR') or seniority_order >= 5

ALWAYS SELECT:
profile_id, full_name, headline, current_job_title, current_company, seniority, area, macroarea, city, state, profile_url, profile_image_url"""


# =============================================================================
# Query Drafting
# =============================================================================

# ─────────────────────────────────────────────────────────────────────────────
# QUERY_DRAFT_PROMPT
# ─────────────────────────────────────────────────────────────────────────────
# Component: Query Drafting Engine
# Called by: src/search/drafting.py :: QueryDraftingEngine.build_system_prompt()
#
# Input: {schema} — SCHEMA_CONTEXT formatted with the table
#        {constraints_section} — MANDATORY_CONSTRAINTS_SECTION or ""
#        {context_section} — SUMMARIZED_CONTEXT_SECTION or ""
#        {feedback_section} — FEEDBACK_SECTION or ""
#        {sample_limit} — rows per turn (settings.sample_limit)
#        {table} — people table
# Output: JSON object (QueryDraft) — parsed by src/search/parsing.py
# ─────────────────────────────────────────────────────────────────────────────
QUERY_DRAFT_PROMPT = """{schema}
{constraints_section}{context_section}{feedback_section}
### Task
Help the recruiter find candidates: understand the conversation, write a ClickHouse query for the latest request and reply conversationally.

### Rules
1. The query MUST be read-only (SELECT only) against {table}.
2. Always select profile_id plus the columns listed under ALWAYS SELECT.
3. Limit the data query to {sample_limit} rows (LIMIT {sample_limit}).
4. countQuery must repeat the WHERE filters of dataQuery and only count: SELECT COUNT(*) AS total FROM ... WHERE ... (no LIMIT).
5. For a specific role, filter current_job_title/headline with ILIKE on that role; do NOT order by seniority_order DESC for specific roles.
6. Never stack many restrictive filters (area AND education AND seniority AND location). Prioritise: role/headline > experience > area > education > location.
7. Education is free text and often empty; prefer it as a preference, not a mandatory filter.
8. Every MANDATORY CONSTRAINT above must appear in the WHERE clause of both queries.
9. In assistantMessage say which criteria were applied, whether any were relaxed, and suggest refinements.
10. Recent messages matter more than older ones.

### Output format
Reply with ONE JSON object and nothing else (no markdown, no code fences):
{{
  "dataQuery": "SELECT ... FROM {table} WHERE ... LIMIT {sample_limit}",
  "countQuery": "SELECT COUNT(*) AS total FROM {table} WHERE ...",
  "explanation": "Short explanation of the query",
  "assistantMessage": "Conversational message to the recruiter",
  "searchCriteriaSummary": "Bullet-point summary of the current search criteria"
}}"""

# ─────────────────────────────────────────────────────────────────────────────
# MANDATORY_CONSTRAINTS_SECTION
# ─────────────────────────────────────────────────────────────────────────────
# Component: Query Drafting Engine
# Input: {directives} — numbered CriticalFilter directives
# Consumed by: QUERY_DRAFT_PROMPT {constraints_section}
# ─────────────────────────────────────────────────────────────────────────────
MANDATORY_CONSTRAINTS_SECTION = """
=== MANDATORY CONSTRAINTS (NON-NEGOTIABLE) ===
Derived from repeated recruiter feedback. Never drop or weaken them:
{directives}
"""

# ─────────────────────────────────────────────────────────────────────────────
# SUMMARIZED_CONTEXT_SECTION
# ─────────────────────────────────────────────────────────────────────────────
# Component: Query Drafting Engine
# Input: {summary} — ContextSummarizer output
# Consumed by: QUERY_DRAFT_PROMPT {context_section}
# ─────────────────────────────────────────────────────────────────────────────
SUMMARIZED_CONTEXT_SECTION = """
=== DURABLE SEARCH CRITERIA (summary of the earlier conversation) ===
{summary}
"""

# ─────────────────────────────────────────────────────────────────────────────
# FEEDBACK_SECTION
# ─────────────────────────────────────────────────────────────────────────────
# Component: Query Drafting Engine
# Input: {interesting} / {not_interesting} — ProfileFeedback.describe() lines
#        {exclusion_rule} — FEEDBACK_EXCLUSION_RULE, or "" in export mode
# Consumed by: QUERY_DRAFT_PROMPT {feedback_section}
# ─────────────────────────────────────────────────────────────────────────────
FEEDBACK_SECTION = """
=== RECRUITER FEEDBACK ===
Profiles marked as INTERESTING:
{interesting}

Profiles marked as NOT INTERESTING:
{not_interesting}

Use this feedback to understand the pattern the recruiter is after.
{exclusion_rule}
"""

FEEDBACK_EXCLUSION_RULE = (
    "Exclude already judged profiles with: profile_id NOT IN ({profile_ids})"
)

# ─────────────────────────────────────────────────────────────────────────────
# RELAXATION_INSTRUCTION
# ─────────────────────────────────────────────────────────────────────────────
# Component: Empty-Result Relaxation Controller
# Called by: src/search/relaxation.py :: RelaxationController.relax()
#
# Input: — (static synthetic user turn appended after the failed draft)
# Output: QueryDraft JSON, same format as QUERY_DRAFT_PROMPT
# ─────────────────────────────────────────────────────────────────────────────
RELAXATION_INSTRUCTION = """The query returned 0 results. RELAX the criteria to find candidates:
1. Remove education filters (many profiles leave it empty)
2. Use ILIKE on headline/current_job_title only, instead of classified area/macroarea filters
3. Widen the seniority range to include more levels
4. Remove location filters
5. Keep only the primary criterion (role/function)

Keep every MANDATORY CONSTRAINT. Produce a broader query in the same JSON format.
In assistantMessage, explain that the criteria were relaxed because the previous search was too restrictive."""

RELAXATION_DISCLOSURE = (
    "⚠️ The original search was too restrictive and found no results. "
    "I relaxed some criteria to bring you candidates."
)


# =============================================================================
# Context Summarization
# =============================================================================

# ─────────────────────────────────────────────────────────────────────────────
# CONTEXT_SUMMARY_PROMPT
# ─────────────────────────────────────────────────────────────────────────────
# Component: Context Summarizer
# Called by: src/search/summarizer.py :: ContextSummarizer.summarize()
#
# Input: {user_messages} — numbered user-authored turns, oldest first
# Output: Plain text, a few short lines
# Consumed by: SUMMARIZED_CONTEXT_SECTION in the drafting prompt (advisory).
# ─────────────────────────────────────────────────────────────────────────────
CONTEXT_SUMMARY_PROMPT = """### Task
Summarize the durable search criteria a recruiter has expressed so far.

### Input
{user_messages}

### Rules
1. Cover only: role, seniority, location, skills, company type, education.
2. When the recruiter changed their mind, keep the most recent preference.
3. Omit criteria that were never mentioned.
4. At most 6 short lines, no preamble.

### Output format
Role: ...
Seniority: ...
Location: ..."""

FEEDBACK_PATTERN_ADDENDUM = (
    "Recruiter liked {count} profile(s).{reasons}"
)

SUMMARY_REQUEST_MESSAGE = "Summarize the search criteria."


# =============================================================================
# Candidate Export
# =============================================================================

# ─────────────────────────────────────────────────────────────────────────────
# EXPORT_QUERY_PROMPT
# ─────────────────────────────────────────────────────────────────────────────
# Component: Query Drafting Engine (export mode)
# Called by: src/search/drafting.py :: QueryDraftingEngine.draft_export()
#
# Input: {schema}, {constraints_section}, {feedback_section}, {table},
#        {export_limit}
# Output: JSON object with "dataQuery" — parsed by src/search/parsing.py
# ─────────────────────────────────────────────────────────────────────────────
EXPORT_QUERY_PROMPT = """{schema}
{constraints_section}{feedback_section}
### Task
Write one ClickHouse query that exports ALL candidates matching the criteria of this conversation.

### Rules
1. Read-only SELECT against {table}, LIMIT {export_limit}.
2. Select: profile_id, full_name, headline, current_job_title, current_company, seniority, area, city, state, profile_url.
3. Do NOT exclude profiles the recruiter already judged.
4. Every MANDATORY CONSTRAINT above must appear in the WHERE clause.

### Output format
Reply with ONE JSON object and nothing else:
{{
  "dataQuery": "SELECT ... FROM {table} WHERE ... LIMIT {export_limit}",
  "explanation": "Short explanation of the query"
}}"""

EXPORT_REQUEST_MESSAGE = (
    "Write the query that exports every candidate matching the search criteria."
)
