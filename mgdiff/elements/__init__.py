"""Element library: quadrature, Tri3/Tri6 shape functions and matrices."""
