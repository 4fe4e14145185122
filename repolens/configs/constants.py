"""
Repolens Constants

Static configuration values that rarely change: file size limits,
default discovery globs and import alias prefixes.
"""

# --- File Size Limits ---
# Files larger than this are skipped (generated bundles, fixtures, dumps)

MAX_FILE_SIZE = 500_000  # 500 KB

# --- Config File ---

CONFIG_FILENAME = ".repolens.yaml"

# --- Discovery Patterns ---
# Globs are relative to the repository root; a leading "**/" also matches at the root

DEFAULT_INCLUDE_PATTERNS = [
    "**/*.ts", "**/*.tsx", "**/*.js", "**/*.jsx",
    "**/*.py", "**/*.pyi",
    "**/*.go",
    "**/*.rs",
    "**/*.java",
    "**/*.cs",
    "**/*.rb",
    "**/*.php",
    "**/*.sh", "**/*.bash",
    "**/*.yaml", "**/*.yml",
    "**/*.tf", "**/*.hcl",
    "**/*.md",
    "**/*.json",
    "**/*.toml",
    "**/*.xml",
    "**/*.sql",
    "**/*.dockerfile", "**/Dockerfile", "**/Dockerfile.*",
    "**/*.c", "**/*.h",
    "**/*.cpp", "**/*.hpp", "**/*.cc", "**/*.cxx",
    "**/*.swift",
    "**/*.kt", "**/*.kts",
    "**/*.scala",
]

DEFAULT_EXCLUDE_PATTERNS = [
    "node_modules/**",
    "dist/**",
    "build/**",
    "out/**",
    ".git/**",
    ".next/**",
    ".nuxt/**",
    ".output/**",
    "vendor/**",
    "__pycache__/**",
    "venv/**",
    ".venv/**",
    "env/**",
    "target/**",
    "**/*.test.*",
    "**/*.spec.*",
    "**/__tests__/**",
    "**/test/**",
    "**/tests/**",
    "coverage/**",
    "site/**",
    "**/*.d.ts",
    "**/*.min.js",
    "**/migrations/**",
]

# --- Import Resolution ---

# Alias prefix -> repository-relative directory
DEFAULT_IMPORT_ALIASES = {"@/": "src/"}

# Extensions probed when resolving an extensionless relative import
RESOLVE_EXTENSIONS = [".ts", ".tsx", ".js", ".jsx"]

# ESM-style suffixes stripped before probing (import "./a.js" -> a.ts)
STRIPPED_IMPORT_SUFFIXES = [".js", ".mjs", ".cjs"]

# Path fragments that mark a file as an application entry point
ENTRY_POINT_MARKERS = ["index.", "main.", "app."]
