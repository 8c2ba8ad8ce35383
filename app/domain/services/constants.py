
# Embedding shape (must match the `products.embedding` vector column)
EMBEDDING_DIM = 768
EMBEDDING_SEED_STRIDE = 73  # seed offset between consecutive components

# Product matching defaults (overridable via settings.match_count / match_threshold)
MATCH_COUNT = 3  # Max products injected into the system prompt
MATCH_THRESHOLD = 0.2  # Minimal cosine similarity to keep a product

# Caller-facing error messages (Indonesian, shown as-is in the chat widget)
MSG_RATE_LIMITED = "Terlalu banyak permintaan, mohon coba lagi nanti."
MSG_QUOTA_EXHAUSTED = "Kredit AI habis, mohon hubungi admin."
MSG_BAD_REQUEST = "Permintaan tidak valid, silakan coba lagi."
MSG_UPSTREAM_ERROR = "Terjadi kesalahan pada AI"
MSG_CONFIG_ERROR = "Layanan belum dikonfigurasi dengan benar."
MSG_INVALID_BODY = "Format permintaan tidak valid."
MSG_NO_MESSAGES = "Pesan tidak boleh kosong."
MSG_INTERNAL_ERROR = "Terjadi kesalahan pada server"
