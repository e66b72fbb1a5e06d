"""Authorization checks for subgraphs and origin domains."""