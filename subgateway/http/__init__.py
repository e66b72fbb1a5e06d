"""HTTP request and response types and middleware."""