"""LLM prompt templates for industry targeting, query planning, company suggestions, re-scoring and contact roles."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# PROMPT 1: Target industries
# ---------------------------------------------------------------------------

INDUSTRY_PROMPT = """You are a B2B market analyst. Identify the industries most likely to buy this product.

Product Name: {product_name}
Product Description: {description}
Product Type: {product_type}
Industry hint from the seller: {industry_hint}

Return 5 to 7 target industries, most promising first. Use short, conventional industry names
(e.g. "Healthcare & Biotechnology", "Financial Services").

Respond with ONLY valid JSON (no markdown, no explanations):

{{
  "industries": ["Industry 1", "Industry 2", "Industry 3"]
}}
"""

# ---------------------------------------------------------------------------
# PROMPT 2: Search query planning
# ---------------------------------------------------------------------------

QUERY_PROMPT = """You are an expert in B2B enterprise sales prospecting and search engine optimization. I need to find actual companies (not lists or articles) that would be interested in purchasing or using this product.

Product Name: {product_name}
Product Description: {description}
Product Type: {product_type}
Target Industries: {industries}
Key Features/Terms: {keywords}

Please generate:
1. 3 general search queries to find companies that would use this product
2. For each of the top 2 industries ({top_industries}), 2 industry-specific search queries
3. 2 search queries focused on finding companies with clear buying intent

Each query should:
- Find actual companies, not lists of companies
- Use industry terminology that would appear on company websites
- Use search operators like "inurl:about" or "site:.com" where appropriate

Respond with ONLY valid JSON in exactly this structure:

{{
  "queries": [
    {{"query": "query text", "intent": "generic", "industry": null}},
    {{"query": "query text", "intent": "industry", "industry": "Industry name"}},
    {{"query": "query text", "intent": "buyer_intent", "industry": null}}
  ]
}}
"""

# ---------------------------------------------------------------------------
# PROMPT 3: Company re-scoring (batches of up to 12)
# ---------------------------------------------------------------------------

RESCORE_PROMPT = """You are an expert B2B enterprise sales analyst. Evaluate how well each company fits as a potential customer for this product.

PRODUCT DETAILS:
Product Name: {product_name}
Product Description: {description}
Product Type: {product_type}
Target Industries: {industries}
Key Features/Terms: {keywords}

EVALUATION CRITERIA:
1. Industry alignment with the target industries
2. Company size and maturity
3. Technological readiness to implement the product
4. Buying signals in the company description
5. Budget potential

COMPANIES TO EVALUATE:
{companies}

For each company provide a relevance score from 0-100, a concise reason, one decision maker role
likely involved in purchasing, and an implementation timeline (immediate, 3-6 months, 6-12 months).

Respond with ONLY valid JSON in exactly this format:

{{
  "companies": [
    {{"index": 0, "score": 85, "reason": "Brief explanation", "decision_maker": "Chief Technology Officer", "timeline": "3-6 months"}}
  ]
}}
"""

RESCORE_COMPANY_BLOCK = """COMPANY {index}:
  Name: {name}
  Industry: {industry}
  Description: {description}
  Website: {website}"""

# ---------------------------------------------------------------------------
# PROMPT 4: Contact roles
# ---------------------------------------------------------------------------

CONTACT_ROLES_PROMPT = """You are a B2B sales strategist. List the job titles most likely to own the purchase decision
at {company_name} ({industry}) for a product described as: {product_hint}

Return 3 to 6 concise job titles, most senior first.

Respond with ONLY valid JSON:

{{
  "roles": ["Title 1", "Title 2", "Title 3"]
}}
"""

# ---------------------------------------------------------------------------
# PROMPT 5: Suggested target companies
# ---------------------------------------------------------------------------

COMPANY_PROMPT = """You are an expert B2B sales lead researcher. Identify the most promising real companies
to approach as buyers of this product.

PRODUCT DETAILS:
Product Name: {product_name}
Product Description: {description}
Product Type: {product_type}
Target Industries: {industries}
Key Features/Terms: {keywords}

REQUIREMENTS:
1. ONLY list actual registered businesses with a web presence, never service categories or topics
   ("Microsoft" is a company; "AI in Finance" or "Machine Learning Services" are not)
2. Prefer established enterprises, scale-ups and recognized startups with market presence
3. Spread the list across the target industries, company sizes and regions
4. Return up to {count} companies

For each company give its industry (one of the target industries), a description that says why it
needs this product, its website domain (e.g. "company.com"), a relevance score from 70-95 and a
specific fit reason.

Respond with ONLY valid JSON in exactly this format:

{{
  "companies": [
    {{"name": "Company Name", "industry": "Industry", "description": "What they do and why they need it", "website": "company.com", "relevance_score": 85, "fit_reason": "Specific reason"}}
  ]
}}
"""
